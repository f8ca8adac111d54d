from setuptools import setup, find_packages

setup(
    name="clipster",
    version="0.1.0",
    description="Push-to-talk voice queries to AI chat providers, answers copied to the clipboard",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "faster-whisper>=1.0.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.8.0",
        "pynput>=1.7.6",
        "pyperclip>=1.8.2",
        "plyer>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "clipster=clipster.main:main",
        ],
    },
)
