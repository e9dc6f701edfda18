"""
Docker facing pieces: reading Dockerfiles, querying the image store and deciding which images this build graph owns.
"""

from .dockerfile import dev_tagged_image, parse_base_images, read_base_images
from .ownership import ImageOwnership, is_owned
from .registry import ImageHashRegistry
from .store import DockerCliImageStore, DockerSdkImageStore, ImageStore, get_image_store
