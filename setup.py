from setuptools import setup

setup(
    name='trotter',
    version='0.5',
    description="Gemini request engine and command line client.",
    classifiers=[
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Communications',
        'Intended Audience :: Developers',
        'Environment :: Console',
        'Development Status :: 4 - Beta',
    ],
    python_requires='>=3.8',
    py_modules = ["netgem", "gemresponse", "gemparse", "gemerrors", "gemutils", "trot"],
    entry_points={
        "console_scripts": ["trot=trot:main"]
    },
    install_requires=["cryptography>=42"],
    extras_require={
        "proctitle": ["setproctitle"],
        "test": ["pytest"],
    },
)
