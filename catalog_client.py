"""
Azure VM image catalog client.
Wraps the Azure CLI (``az vm image ...``) and parses its JSON output into typed records.
"""
from typing import Optional, Dict, List, Any
from dataclasses import dataclass, field
from enum import Enum
import json
import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for catalog client errors."""


class PrerequisiteMissing(CatalogError):
    """The Azure CLI is not installed or the user is not logged in."""


class FetchFailed(CatalogError):
    """An Azure CLI invocation failed or returned unparseable output."""

    def __init__(self, message: str, command: Optional[List[str]] = None, stderr: str = ""):
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr.strip()

    def __str__(self) -> str:
        text = super().__str__()
        if self.stderr:
            text = f"{text}: {self.stderr}"
        return text


class ItemKind(Enum):
    """Level of the image hierarchy a catalog item belongs to."""
    PUBLISHER = "publisher"
    OFFER = "offer"
    SKU = "sku"
    VERSION = "version"


@dataclass
class NamedItem:
    """Base for catalog records that expose a single display key."""
    location: Optional[str] = None
    resource_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    kind = None

    @property
    def display_key(self) -> str:
        raise NotImplementedError


@dataclass
class Publisher(NamedItem):
    name: str = ""

    kind = ItemKind.PUBLISHER

    @property
    def display_key(self) -> str:
        return self.name


@dataclass
class Offer(NamedItem):
    offer: str = ""

    kind = ItemKind.OFFER

    @property
    def display_key(self) -> str:
        return self.offer


@dataclass
class Sku(NamedItem):
    sku: str = ""

    kind = ItemKind.SKU

    @property
    def display_key(self) -> str:
        return self.sku


@dataclass
class ImageVersion(NamedItem):
    version: str = ""
    urn: Optional[str] = None
    architecture: Optional[str] = None

    kind = ItemKind.VERSION

    @property
    def display_key(self) -> str:
        return self.version


@dataclass
class ImageDetail:
    """Represents the output of ``az vm image show`` for one image version."""
    name: Optional[str] = None
    location: Optional[str] = None
    architecture: Optional[str] = None
    hyper_v_generation: Optional[str] = None
    os_type: Optional[str] = None
    os_disk_size_gb: Optional[int] = None
    data_disk_count: int = 0
    plan_name: Optional[str] = None
    plan_product: Optional[str] = None
    plan_publisher: Optional[str] = None
    image_state: Optional[str] = None
    automatic_os_upgrade_supported: Optional[bool] = None
    features: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def has_plan(self) -> bool:
        return bool(self.plan_name)

    @classmethod
    def from_cli(cls, data: Dict[str, Any]) -> "ImageDetail":
        """Build an ImageDetail from the CLI's JSON record."""
        os_disk = data.get("osDiskImage") or {}
        plan = data.get("plan") or {}
        deprecation = data.get("imageDeprecationStatus") or {}
        upgrade = data.get("automaticOsUpgradeProperties") or {}

        size_gb = os_disk.get("sizeInGb")
        if size_gb is None and os_disk.get("sizeInBytes"):
            size_gb = int(os_disk["sizeInBytes"]) // (1024 ** 3)

        features = {}
        for feature in data.get("features") or []:
            if feature.get("name"):
                features[feature["name"]] = str(feature.get("value", ""))

        return cls(
            name=data.get("name"),
            location=data.get("location"),
            architecture=data.get("architecture"),
            hyper_v_generation=data.get("hyperVGeneration"),
            os_type=os_disk.get("operatingSystem"),
            os_disk_size_gb=size_gb,
            data_disk_count=len(data.get("dataDiskImages") or []),
            plan_name=plan.get("name"),
            plan_product=plan.get("product"),
            plan_publisher=plan.get("publisher"),
            image_state=deprecation.get("imageState"),
            automatic_os_upgrade_supported=upgrade.get("automaticOsUpgradeSupported"),
            features=features,
            raw=data,
        )


def _is_not_found(stderr: str) -> bool:
    text = stderr.lower()
    return "notfound" in text or "not found" in text


class CatalogClient:
    """Client for browsing the VM image catalog through the Azure CLI.

    Every fetch is a single blocking CLI invocation. There is no retry and
    no timeout; failures surface as FetchFailed.
    """

    def __init__(self, az_path: str = "az"):
        self.az_path = az_path

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        command = [self.az_path] + args + ["--output", "json"]
        logger.debug(f"Running: {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        except UnicodeDecodeError as e:
            logger.error(f"Azure CLI output is not valid UTF-8: {e}")
            raise FetchFailed("Azure CLI returned undecodable output", command, str(e)) from e
        except OSError as e:
            logger.error(f"Could not execute Azure CLI: {e}")
            raise FetchFailed(f"Could not execute '{self.az_path}'", command, str(e)) from e

    def _parse(self, result: subprocess.CompletedProcess, what: str) -> Any:
        try:
            return json.loads(result.stdout or "null")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON while fetching {what}: {e}")
            raise FetchFailed(f"Azure CLI returned invalid JSON for {what}", result.args) from e

    def _fetch_list(self, args: List[str], what: str) -> List[Dict[str, Any]]:
        result = self._run(args)
        if result.returncode != 0:
            logger.error(f"Failed to fetch {what} (exit {result.returncode})")
            raise FetchFailed(f"Failed to fetch {what}", result.args, result.stderr or "")
        data = self._parse(result, what)
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchFailed(f"Expected a list of {what} from Azure CLI", result.args)
        logger.debug(f"Fetched {len(data)} {what}")
        return data

    def check_prerequisites(self) -> Dict[str, Any]:
        """Verify the Azure CLI is installed and logged in.

        Returns:
            The ``az account show`` record of the active account.

        Raises:
            PrerequisiteMissing: If the CLI is absent or not authenticated.
        """
        if shutil.which(self.az_path) is None:
            raise PrerequisiteMissing(
                f"Azure CLI ('{self.az_path}') not found. "
                "Install it from https://aka.ms/azure-cli"
            )
        try:
            result = self._run(["account", "show"])
        except FetchFailed as e:
            raise PrerequisiteMissing(str(e)) from e
        if result.returncode != 0:
            raise PrerequisiteMissing("Not logged in to Azure. Run 'az login' first.")
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError:
            return {}

    def list_publishers(self, region: str) -> List[Publisher]:
        records = self._fetch_list(
            ["vm", "image", "list-publishers", "--location", region],
            "publishers",
        )
        return [
            Publisher(name=r.get("name", ""), location=r.get("location"), resource_id=r.get("id"), raw=r)
            for r in records
        ]

    def list_offers(self, region: str, publisher: str) -> List[Offer]:
        records = self._fetch_list(
            ["vm", "image", "list-offers", "--location", region, "--publisher", publisher],
            f"offers for {publisher}",
        )
        return [
            Offer(offer=r.get("name", ""), location=r.get("location"), resource_id=r.get("id"), raw=r)
            for r in records
        ]

    def list_skus(self, region: str, publisher: str, offer: str) -> List[Sku]:
        records = self._fetch_list(
            ["vm", "image", "list-skus", "--location", region,
             "--publisher", publisher, "--offer", offer],
            f"SKUs for {publisher}:{offer}",
        )
        return [
            Sku(sku=r.get("name", ""), location=r.get("location"), resource_id=r.get("id"), raw=r)
            for r in records
        ]

    def list_versions(self, region: str, publisher: str, offer: str, sku: str) -> List[ImageVersion]:
        """List all versions of one image.

        ``az vm image list`` matches its filters as substrings, so records
        are narrowed to exact (case-insensitive) publisher/offer/sku matches.
        """
        records = self._fetch_list(
            ["vm", "image", "list", "--location", region,
             "--publisher", publisher, "--offer", offer, "--sku", sku, "--all"],
            f"versions for {publisher}:{offer}:{sku}",
        )
        versions = []
        for r in records:
            if (
                r.get("publisher", "").lower() != publisher.lower()
                or r.get("offer", "").lower() != offer.lower()
                or r.get("sku", "").lower() != sku.lower()
            ):
                continue
            versions.append(ImageVersion(
                version=r.get("version", ""),
                urn=r.get("urn"),
                architecture=r.get("architecture"),
                location=region,
                raw=r,
            ))
        return versions

    def get_image_detail(
        self, region: str, publisher: str, offer: str, sku: str, version: str
    ) -> Optional[ImageDetail]:
        """Fetch the detail record for one image version.

        Returns:
            The parsed ImageDetail, or None if the image does not exist.
        """
        urn = f"{publisher}:{offer}:{sku}:{version}"
        result = self._run(["vm", "image", "show", "--location", region, "--urn", urn])
        if result.returncode != 0:
            if _is_not_found(result.stderr or ""):
                logger.warning(f"Image detail not found for {urn}")
                return None
            logger.error(f"Failed to fetch image detail for {urn} (exit {result.returncode})")
            raise FetchFailed(f"Failed to fetch image detail for {urn}", result.args, result.stderr or "")
        data = self._parse(result, f"image detail for {urn}")
        if not data:
            return None
        return ImageDetail.from_cli(data)
