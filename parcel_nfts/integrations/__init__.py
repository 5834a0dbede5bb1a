"""
Integrations with the external systems the workflows drive.

`base` defines the collaborator interfaces; the other modules implement or
build on them.
"""
