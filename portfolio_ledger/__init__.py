"""Portfolio Ledger: owner-managed weighted portfolios with validated state transitions."""

__version__ = "0.1.0"
