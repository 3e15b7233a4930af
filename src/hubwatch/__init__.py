"""hubwatch — keeps Docker Compose services in step with Docker Hub.

Compares the content digest a registry reports for each tracked image tag
with the locally cached image, and optionally pulls and restarts the
compose service that runs it.
"""

__version__ = "0.1.0"
