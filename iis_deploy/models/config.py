"""Deploy configuration data models"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..constants import CONFIG_FILE_NAME, EXCLUDE_DELIMITERS, REQUIRED_CONFIG_FIELDS


def normalize_exclusions(value: Union[None, str, Iterable[str]]) -> Tuple[str, ...]:
    """Normalize an exclusion list from its wire form

    Accepts a delimited string ("a,b; c") or a sequence of strings. Items
    are trimmed, empty items dropped and repeated items kept only at their
    first position.

    Args:
        value: Raw exclusion value from the configuration file

    Returns:
        Ordered tuple of patterns
    """
    if value is None:
        return ()

    if isinstance(value, str):
        text = value
        for delimiter in EXCLUDE_DELIMITERS[1:]:
            text = text.replace(delimiter, EXCLUDE_DELIMITERS[0])
        raw_items = text.split(EXCLUDE_DELIMITERS[0])
    else:
        raw_items = list(value)

    items = []
    for item in raw_items:
        if item is None:
            continue
        item = str(item).strip()
        if item and item not in items:
            items.append(item)

    return tuple(items)


@dataclass(frozen=True)
class DeployConfiguration:
    """Deployment target loaded from deploy.config.json"""

    server: str = ""
    pool_name: str = ""
    app_folder_location: str = ""
    backup_folder_location: str = ""
    exclude_from_cleanup: Tuple[str, ...] = field(default_factory=tuple)
    exclude_from_copy: Tuple[str, ...] = field(default_factory=tuple)
    default_configuration: Optional[str] = None
    source_path: Optional[str] = field(default=None, compare=False)

    # wire name -> attribute name
    FIELD_MAP = {
        "server": "server",
        "poolname": "pool_name",
        "appfolderlocation": "app_folder_location",
        "backupfolderlocation": "backup_folder_location",
        "excludefromcleanup": "exclude_from_cleanup",
        "excludefromcopy": "exclude_from_copy",
        "defaultconfiguration": "default_configuration",
    }

    def validate(self) -> List[str]:
        """Check required fields

        Returns:
            List of problems, empty when the configuration is usable
        """
        issues = []
        file_name = CONFIG_FILE_NAME
        if self.source_path:
            file_name = self.source_path.replace("\\", "/").rsplit("/", 1)[-1]

        for wire_name in REQUIRED_CONFIG_FIELDS:
            attr = self.FIELD_MAP[wire_name.lower()]
            value = getattr(self, attr)
            if value is None or not str(value).strip():
                issues.append(f"{wire_name} is required in {file_name}")

        return issues

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to wire dictionary"""
        data = {
            "server": self.server,
            "poolName": self.pool_name,
            "appFolderLocation": self.app_folder_location,
            "backupFolderLocation": self.backup_folder_location,
            "excludeFromCleanup": list(self.exclude_from_cleanup),
            "excludeFromCopy": list(self.exclude_from_copy),
        }
        if self.default_configuration:
            data["defaultConfiguration"] = self.default_configuration
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source_path: Optional[str] = None) -> 'DeployConfiguration':
        """Create from a parsed JSON object, matching keys case-insensitively"""
        values: Dict[str, Any] = {}
        for key, value in data.items():
            attr = cls.FIELD_MAP.get(str(key).lower())
            if attr:
                values[attr] = value

        def text(name: str) -> str:
            value = values.get(name)
            return "" if value is None else str(value).strip()

        default_configuration = values.get("default_configuration")
        if default_configuration is not None:
            default_configuration = str(default_configuration).strip() or None

        return cls(
            server=text("server"),
            pool_name=text("pool_name"),
            app_folder_location=text("app_folder_location"),
            backup_folder_location=text("backup_folder_location"),
            exclude_from_cleanup=normalize_exclusions(values.get("exclude_from_cleanup")),
            exclude_from_copy=normalize_exclusions(values.get("exclude_from_copy")),
            default_configuration=default_configuration,
            source_path=source_path,
        )

    @classmethod
    def template(cls) -> Dict[str, Any]:
        """Empty wire template written by `iis-deploy init`"""
        return {
            "server": "",
            "poolName": "",
            "appFolderLocation": "",
            "backupFolderLocation": "",
            "excludeFromCleanup": "",
            "excludeFromCopy": "",
        }

    def __str__(self) -> str:
        return f"Server: {self.server}, Pool: {self.pool_name}, AppFolder: {self.app_folder_location}"
