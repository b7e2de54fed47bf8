from setuptools import setup, find_packages

setup(
    name='formpilot',
    version='0.1.0',
    license="Apache 2.0",
    description="formpilot: set values on live form elements through a JSON-RPC style handler",
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={
        "formpilot": ["configs/*.yaml"],
    },
    include_package_data=True,
    install_requires=[
        "playwright>=1.40",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "click>=8.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        'console_scripts': [
            'formpilot-rpc=formpilot.command.formpilot_rpc:run',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.10',
)
