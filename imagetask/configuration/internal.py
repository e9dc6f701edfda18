from imagetask.configuration.file import ConfigEntry, LegacyConfigEntry


class Images(object):
    SECTION = "images"
    NAMESPACE = ConfigEntry(LegacyConfigEntry(SECTION, "namespace"))
    """
    Repository prefix shared by every image this build graph produces, e.g. ``airbyte/``.
    """
    DEV_TAG = ConfigEntry(LegacyConfigEntry(SECTION, "dev_tag"))
    EXCLUDED = ConfigEntry(LegacyConfigEntry(SECTION, "excluded", list))
    """
    Repositories carrying the namespace prefix that are nevertheless built elsewhere.
    """
    NAME_LABEL = ConfigEntry(LegacyConfigEntry(SECTION, "name_label"))


class Build(object):
    SECTION = "build"
    SCRIPT = ConfigEntry(LegacyConfigEntry(SECTION, "script"))
    VERSIONS_DIR = ConfigEntry(LegacyConfigEntry(SECTION, "versions_dir"))


class Store(object):
    SECTION = "store"
    BACKEND = ConfigEntry(LegacyConfigEntry(SECTION, "backend"))


class Scheduler(object):
    SECTION = "scheduler"
    HISTORY = ConfigEntry(LegacyConfigEntry(SECTION, "history"))
