# setup.py
from setuptools import setup, find_packages

setup(
    name="app-logger",
    version="1.0.0",
    description="Leveled application logger with locale-aware timestamps, console and daily rotating file sinks",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_packages("src"),  # Encuentra automáticamente la carpeta 'applogger'
    python_requires=">=3.8",
    install_requires=[
        "rich",   # Salida de consola coloreada por nivel
        "Babel",  # Patrones de fecha CLDR por locale
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
