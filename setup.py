# setup.py
from setuptools import setup, find_packages

setup(
    name="article_scout",
    version="0.1.0",
    description="Polite asynchronous crawler that extracts articles, keywords, language and difficulty",
    packages=find_packages(include=["article_scout", "article_scout.*"]),
    package_data={"article_scout.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "soupsieve>=2.5",
        "lxml>=4.9",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "article-scout=article_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
