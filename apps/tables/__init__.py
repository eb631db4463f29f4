"""Tables app package.

The club's bookable tables. A table only carries identity and a name; its
availability is derived from the active reservations held against it.
"""
