"""
assessment-export: VMware inventory assessment report exporter.

Turns inventory snapshots collected from vCenter into shareable reports:
a self-contained HTML document, or a paginated PDF captured from an already
rendered dashboard.

Main features:
- Normalization of the inventory snapshot shapes seen in the wild
- Chart-ready aggregates (power states, resource margins, OS top 8, storage)
- Boundary-aware PDF pagination that never splits a dashboard card
- Observable export state for UIs and the CLI
"""

__version__ = "0.1.0"
