"""
Core Package

Contains the exchange-agnostic core logic including:
- ExchangeApi: Abstract base class defining the contract for all exchange adapters
- ExchangeManager: Registry that builds adapters and collects one merged ledger
- Schemas: Pydantic models for the normalized ledger (Credential, Transaction, HistoryQuery)
- Errors: Fetch outcomes (TransactionHistory, TransportError, DecodeError, ExchangeBusinessError)

No exchange-specific type crosses this layer.
"""
