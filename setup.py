from setuptools import setup, find_packages

setup(
    name="erc20-deploy",
    version="0.1.0",
    description="Deploy a parameterized ERC-20 token contract to an EVM network",
    packages=find_packages(include=["erc20_deploy", "erc20_deploy.*"]),
    install_requires=[
        "web3>=6.0.0",
        "eth-account>=0.8.0",
        "eth-abi>=4.0.0",
        "eth-keys>=0.4.0",
        "rlp>=3.0.0",
        "aiohttp>=3.8.0",
        "jsonschema>=4.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "erc20-deploy=erc20_deploy.main:main",
        ],
    },
)
