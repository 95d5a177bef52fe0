#!/bin/python

#This file contains some utilities common to netgem, gemresponse and trot.
#Currently, there are the following utilities:
#
# LOGGING / set_logging_level : logging configuration shared by all modules
# parse_mime : split a meta string into a mime type and its options
# config_dir : XDG configuration directory of the trot client

import os
import logging
import logging.config

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "[%(asctime)s] [%(levelname)8s] [%(filename)s:%(lineno)s - %(funcName).20s…] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "default",
        }
    },
    "loggers": {"": {"handlers": ["stderr"], "level": "ERROR"}},
}


def set_logging_level(level):
    LOGGING["loggers"][""]["level"] = level
    logging.config.dictConfig(LOGGING)


def parse_mime(mime):
    options = {}
    if mime:
        if ";" in mime:
            splited = mime.split(";",maxsplit=1)
            mime = splited[0].strip()
            for o in splited[1].replace(";"," ").split():
                spl = o.split("=",maxsplit=1)
                if len(spl) == 2:
                    options[spl[0].lower()] = spl[1].strip('"')
    return mime, options


## Config directories
## We implement our own python-xdg to avoid conflict with existing libraries.
def config_dir():
    _home = os.path.expanduser('~')
    config_home = os.environ.get('XDG_CONFIG_HOME') or \
                    os.path.join(_home,'.config')
    return os.path.join(config_home,"trot")
