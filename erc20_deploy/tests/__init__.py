"""
erc20-deploy Tests Package

Run with pytest:
   pytest erc20_deploy/tests/ -v

Shared fixtures (fake ledger client, fake clock, fixed credential,
template artifact) live in conftest.py.
"""
