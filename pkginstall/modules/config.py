# pkginstall/modules/config.py
import configparser
import os

DEFAULT_LOCATIONS = [
    "/etc/pkginstall/pkginstall.conf",
    os.path.expanduser("~/.config/pkginstall/pkginstall.conf"),
]


def default_locations():
    env = os.environ.get("PKGINSTALL_CONFIG")
    if env:
        return [env] + DEFAULT_LOCATIONS
    return list(DEFAULT_LOCATIONS)


class PkgConfig:
    def __init__(self, locations=None):
        self.locations = locations or default_locations()
        self.config = configparser.ConfigParser()
        self.loaded_from = None
        self.reload()

    def reload(self):
        """(Re)load configuration from the first available file.

        With no file present the configuration stays empty and every getter
        answers with its fallback.
        """
        self.config = configparser.ConfigParser()
        self.loaded_from = None
        for path in self.locations:
            if os.path.isfile(path):
                self.config.read(path)
                self.loaded_from = path
                return

    def get(self, section, option, fallback=None):
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def getboolean(self, section, option, fallback=False):
        try:
            return self.config.getboolean(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getint(self, section, option, fallback=0):
        try:
            return self.config.getint(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback


# shared default instance
config = PkgConfig()
