"""Module release engine: version sequencing, linkage scanning, readiness checks."""
