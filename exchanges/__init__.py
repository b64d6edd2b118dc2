"""
Exchange Adapters Package

Each exchange has its own subfolder with:
- api_client.py: Signed HTTP transport
- signer.py: Authentication header computation
- models.py: Wire models and the mapper to Transaction
- __init__.py: Adapter class implementing ExchangeApi

Adding an exchange does not require changes outside its own folder, apart
from registering it in core.exchange_manager.
"""
