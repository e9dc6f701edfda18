# Hash recorded for a base image that the image store does not know about.
UNKNOWN_IMAGE_HASH = "???"

DEFAULT_NAMESPACE = "airbyte/"
DEFAULT_DEV_TAG = "dev"
# Images in the namespace that are built outside of this build graph.
DEFAULT_EXCLUDED_IMAGES = ("airbyte/base-airbyte-protocol-python",)
DEFAULT_NAME_LABEL = "io.airbyte.name"

DEFAULT_BUILD_SCRIPT = "tools/bin/build_image.sh"
DEFAULT_VERSIONS_DIR = ".dockerversions"

DOCKERFILE = "Dockerfile"
DOCKERIGNORE = ".dockerignore"

ASSEMBLE_TASK = "assemble"
CLEAN_TASK = "clean"

DOCKER_IMAGES_FORMAT = "{{.Repository}}:{{.Tag}} {{.ID}}"
