from setuptools import setup

setup(
    name='hashid-routing',
    version='1.0.0',
    description='Obfuscated integer route parameters for FastAPI, backed by hashids.',
    packages=['hashid_routing'],
    python_requires='>=3.8',
    install_requires=[
        'fastapi',
        'pydantic>=2',
        'pydantic-settings',
        'hashids',
        'jinja2',
    ],
    extras_require={
        'demo': [
            'uvicorn',
        ],
        'test': [
            'pytest',
            'httpx',
        ],
    },
)
