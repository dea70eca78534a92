"""
Package installation and setup script for RSS Reader.
"""

from setuptools import setup, find_packages
import os

# Read the README file
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = 'RSS Reader - cancellable fetching and parsing of RSS 2.0 and Atom 1.0 feeds'

# Read requirements
requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
if os.path.exists(requirements_path):
    with open(requirements_path, 'r', encoding='utf-8') as f:
        requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]
else:
    requirements = [
        'requests>=2.31.0',
        'lxml>=4.9.0',
        'charset-normalizer>=3.0.0',
        'python-dateutil>=2.8.2',
        'python-dotenv>=1.0.0',
    ]

setup(
    name='rss-reader',
    version='1.0.0',
    description='Cancellable, timeout-aware fetching and parsing of RSS 2.0 and Atom 1.0 feeds',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='RSS Reader Team',

    # Package discovery
    packages=find_packages(exclude=['tests*']),
    include_package_data=True,

    # Dependencies
    install_requires=requirements,

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=4.0.0',
            'black>=23.0.0',
            'flake8>=5.0.0',
            'mypy>=1.0.0',
        ],
        'test': [
            'pytest>=7.0.0',
            'pytest-cov>=4.0.0',
            'responses>=0.23.0',
        ]
    },

    # Entry points
    entry_points={
        'console_scripts': [
            'rss-reader=rss_reader.main:main',
        ],
    },

    # Metadata
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Text Processing :: Markup :: XML',
    ],

    # Python version requirement
    python_requires='>=3.10',

    # Keywords
    keywords='rss atom feeds parser reader',

    # License
    license='MIT',

    # Zip safe
    zip_safe=False,
)
