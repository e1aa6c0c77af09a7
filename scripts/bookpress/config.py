"""
Build configuration: load, validate, and provide defaults for book.yaml.
"""

import os

import yaml


# Fields required in every book.yaml
REQUIRED_FIELDS = ["title"]

KNOWN_FORMATS = ["epub", "html", "pdf", "odt"]

BLANK_LINE_POLICIES = ["skip", "error"]

# Defaults applied if missing
DEFAULTS = {
    "author": "",
    "lang": "en-US",
    "basename": None,
    "manuscript_dir": "manuscript",
    "manifest": "Book.txt",
    "sample_manifest": "Sample.txt",
    "images_dir": "images",
    "stylesheets_dir": "Stylesheets",
    "cover_image": "title_page.png",
    "stylesheet": "Global.css",
    "output_dir": ".",
    "toc_depth": 2,
    "highlight_style": "pygments",
    "blank_lines": "skip",
    "formats": list(KNOWN_FORMATS),
    "continue_on_error": True,
    "html": {},
    "pdf": {},
    "link_check": {},
}

# Defaults within sub-sections
HTML_DEFAULTS = {
    "cover_page": None,
}

PDF_DEFAULTS = {
    "engine": None,
}

LINK_CHECK_DEFAULTS = {
    "workers": 8,
    "timeout": 60,
    "deadline": None,
    "warn_statuses": [400, 403],
}


class ConfigError(Exception):
    """Raised when book.yaml is missing or invalid."""
    pass


class BuildConfig:
    """
    Loaded, validated build configuration.

    Built once per process and handed to every component; nothing reads
    paths or options from module globals.

    Usage:
        config = BuildConfig.load(project_root)
        config.title               # "Test-Driven Development"
        config.manuscript_path     # "/abs/project/manuscript"
        config.link_check["workers"]
    """

    def __init__(self, data, project_root):
        self._data = data
        self.project_root = os.path.abspath(project_root)

    @classmethod
    def load(cls, project_root, path=None):
        """Load and validate book.yaml (or an explicit config path)."""
        yaml_path = path or os.path.join(project_root, "book.yaml")
        if not os.path.exists(yaml_path):
            raise ConfigError(f"No config found at {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"{yaml_path} is not valid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(
                f"{os.path.basename(yaml_path)} must be a YAML mapping, "
                f"got {type(data).__name__}"
            )

        return cls.from_dict(data, project_root)

    @classmethod
    def from_dict(cls, data, project_root):
        """Validate a raw mapping and apply defaults."""
        data = dict(data)

        missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise ConfigError(f"config missing required fields: {', '.join(missing)}")

        # Apply top-level defaults
        for key, default in DEFAULTS.items():
            data.setdefault(key, default if not isinstance(default, (list, dict)) else type(default)(default))

        for section in ["html", "pdf", "link_check"]:
            if not isinstance(data[section], dict):
                raise ConfigError(f"'{section}' must be a mapping")
            data[section] = dict(data[section])

        # Apply section defaults
        for key, default in HTML_DEFAULTS.items():
            data["html"].setdefault(key, default)
        for key, default in PDF_DEFAULTS.items():
            data["pdf"].setdefault(key, default)
        for key, default in LINK_CHECK_DEFAULTS.items():
            data["link_check"].setdefault(key, default)

        if not data["basename"]:
            data["basename"] = data["title"]

        cls._validate(data)
        return cls(data, project_root)

    @staticmethod
    def _validate(data):
        if data["blank_lines"] not in BLANK_LINE_POLICIES:
            raise ConfigError(
                f"blank_lines must be one of {', '.join(BLANK_LINE_POLICIES)}, "
                f"got '{data['blank_lines']}'"
            )

        unknown = [fmt for fmt in data["formats"] if fmt not in KNOWN_FORMATS]
        if unknown:
            raise ConfigError(f"unknown formats in config: {', '.join(map(str, unknown))}")

        try:
            data["toc_depth"] = int(data["toc_depth"])
            data["link_check"]["workers"] = int(data["link_check"]["workers"])
            data["link_check"]["timeout"] = float(data["link_check"]["timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e

        link_check = data["link_check"]
        if link_check["workers"] < 1:
            raise ConfigError("link_check.workers must be at least 1")

        if not isinstance(link_check["warn_statuses"], list):
            raise ConfigError("link_check.warn_statuses must be a list of status codes")
        try:
            link_check["warn_statuses"] = [int(s) for s in link_check["warn_statuses"]]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid status in link_check.warn_statuses: {e}") from e

        if link_check["deadline"] is not None:
            try:
                link_check["deadline"] = float(link_check["deadline"])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"invalid link_check.deadline: {e}") from e
            if link_check["deadline"] <= 0:
                raise ConfigError("link_check.deadline must be positive")

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BuildConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    # ── Resolved paths ─────────────────────────────────────

    def _from_root(self, path):
        return os.path.abspath(os.path.join(self.project_root, path))

    @property
    def manuscript_path(self):
        return self._from_root(self.manuscript_dir)

    @property
    def images_path(self):
        return os.path.join(self.manuscript_path, self.images_dir)

    @property
    def stylesheets_path(self):
        return os.path.join(self.manuscript_path, self.stylesheets_dir)

    @property
    def cover_image_path(self):
        return os.path.join(self.images_path, self.cover_image)

    @property
    def stylesheet_path(self):
        return os.path.join(self.stylesheets_path, self.stylesheet)

    @property
    def output_path(self):
        return self._from_root(self.output_dir)

    def manifest_name(self, sample=False):
        """Manifest file for a full build or a sample build."""
        return self.sample_manifest if sample else self.manifest

    # ── Convenience ────────────────────────────────────────

    def metadata_args(self):
        """Build pandoc --metadata arguments list."""
        args = []
        for key in ["title", "author", "lang"]:
            value = self.get(key)
            if value:
                args.append(f"--metadata={key}={value}")
        return args

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:   {self.title}")
        if self.author:
            print(f"  Author: {self.author}")
        print(f"  Source: {self.manuscript_path}")
