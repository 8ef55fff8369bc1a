from setuptools import setup, find_packages

setup(
    name="hkvisor",
    version="0.1.0",
    packages=find_packages(include=["hkvisor", "hkvisor.*"]),
    install_requires=[
        "httpx>=0.24.0",
        "aiofiles>=23.1.0",
        "pydantic>=2.11",
        "pytz>=2023.3",
        "aiosmtplib>=2.0",
        "PyYAML>=6.0",
        "click>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "respx>=0.20",
        ],
    },
    entry_points={
        "console_scripts": [
            "hkvisor=hkvisor.__main__:main_entry",
        ],
    },
    python_requires=">=3.9",
    description="Emails snapshots of motion events reported by Hikvision IP cameras",
    keywords="camera, hikvision, isapi, motion, notification",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
