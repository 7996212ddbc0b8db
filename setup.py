from setuptools import setup, find_packages

setup(
    name='risico',
    version='0.1.0',
    packages=find_packages(),
    install_requires=[
        'numpy',
        'numba',
        'pandas',
        'pyarrow',
    ],
    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
            'ruff>=0.1.0',
        ],
    },
    python_requires='>=3.9',
)
