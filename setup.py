import re
from pathlib import Path

from setuptools import find_packages, setup

# read the version without importing the package (and its dependencies)
__version__ = re.search(
    r'__version__ = "(.+?)"',
    Path(__file__).parent.joinpath("src", "libcolonycount", "__init__.py").read_text(),
).group(1)

setup(
    name='libcolonycount',
    version=__version__,

    url='https://github.com/msudesigncpr/libcolonycount',
    author='John Fike',
    author_email='colonypicker@gmail.com',

    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'opencv-python',
        'scikit-learn',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
