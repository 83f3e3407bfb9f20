"""
Vehicle Scraper HTTP API.
"""
