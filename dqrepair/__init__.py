"""Record-level data-quality repair for person/address record feeds.

Raw records sharing an entity-cluster id (cuid) are grouped, validated field by
field and across field groups, and invalid values are repaired from duplicate
evidence and dataset-wide indices.
"""

__version__ = "0.1.0"
