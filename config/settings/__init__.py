"""Settings package for the club reservations project.

`base.py` contains common configuration shared across environments. The
`dev.py`, `test.py` and `prod.py` modules extend it with environment
specific overrides.
"""
