"""Default collaborator implementations.

Filesystem, subprocess and Pillow backed components that satisfy the
protocols in simpack.build.collaborators. default_collaborators() wires them
together for command-line builds.
"""
