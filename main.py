#!/usr/bin/env python3
"""
Tax Type Resolver - Entry Point

Determines which tax types and rates apply to a transaction based on
where the customer and the store are, and where the store is registered.

Usage:
    python main.py resolve --customer CA-ON --store CA-NS
    python main.py resolve --customer CA-ON --store US-NY --registration CA --amount 100
    python main.py types --tag CA
    python main.py rates --type ca_ns_hst
    python main.py export --output reports/rates.csv
"""

from tax_resolver.cli import main

if __name__ == "__main__":
    main()
