"""User-facing result messages.

The search core only fills ``noResultsMessage`` and alternative reasons from
these templates; a presentation layer that localizes the portal passes its own
:class:`MessageCatalog` with translated templates.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageCatalog:
    no_products: str = "No products are available right now."
    no_products_for_filters: str = "No products match the selected filters."
    no_results: str = (
        'No products found for "{query}". Try searching with different keywords or check the filters.'
    )
    no_exact_matches: str = 'No exact matches found for "{query}". Here are some alternatives:'
    no_oem_match: str = (
        'No direct match found for OEM code "{code}". Check suggestions below for possible alternatives.'
    )
    compatible_viscosity: str = "Compatible {viscosity} alternative to {anchor}"
    compatible_application: str = "{brand} alternative for {application} use, like {anchor}"
    alternative_brand: str = "Alternative from {brand} to {anchor}"

    def render(self, template: str, **values: object) -> str:
        try:
            return template.format(**values)
        except (KeyError, IndexError, ValueError):
            # A translated template with unknown placeholders still shows up.
            return template


DEFAULT_MESSAGES = MessageCatalog()
