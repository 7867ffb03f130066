import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="nmea_location_sender",
    version="0.1.0",
    description="Send position and heading as NMEA 0183 sentences over UDP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    install_requires=["pyproj"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["nmea-location-sender=nmea_location_sender.__main__:main"],
    },
    python_requires=">=3.11",
)
