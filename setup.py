from setuptools import setup, find_packages

setup(
    name="checkboxart",
    version="1.0.0",
    description="Turn still images and animated GIFs into playable checkbox art grids.",
    author="Alvin Kwabena",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "opencv-python",
        "Pillow",
        "numpy",
        "customtkinter",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'checkboxart=checkboxart.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
)
