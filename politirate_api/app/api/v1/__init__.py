"""
Version 1 of the PolitiRate API.
"""
