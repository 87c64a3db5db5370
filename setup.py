from setuptools import setup, find_packages

setup(
    name="bookgraph",
    version="0.1.0",
    description="GraphQL library service: books, authors, users and live book events",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "strawberry-graphql[fastapi]>=0.220",
        "graphql-core>=3.2",
        "aiodataloader>=0.4",
        "PyJWT>=2.8",
        "passlib[argon2]>=1.7.4",
        "SQLAlchemy[asyncio]>=2.0",
        "aiosqlite>=0.19",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.26",
        ],
    },
    entry_points={
        'console_scripts': [
            'bookgraph-server=bookgraph.main:run',
            'bookgraph-seed=bookgraph.database.seed:main',
        ],
    },
    zip_safe=False,
)
