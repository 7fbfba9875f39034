"""
Parsing utilities for extracting company details from scraped websites.

This package contains modules for:
- Filtering, cleaning and decomposing postal addresses
- Extracting name, phone, email, industry and description from site markup
"""
