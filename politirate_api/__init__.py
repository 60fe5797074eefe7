"""
Top-level package for the PolitiRate API.

This file makes ``politirate_api`` a package so that modules within
``app`` can be imported with fully qualified names such as
``politirate_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
