"""Closed vocabularies shared by every layer.

Tiers, flow types, component categories, command intents and the full
component type catalog are enums so that an unknown value is rejected
at the model boundary instead of leaking into layout or rendering.
"""

from __future__ import annotations

from enum import StrEnum


class Tier(StrEnum):
    """Placement bands, ordered left to right on the canvas."""

    EXTERNAL = "external"
    DMZ = "dmz"
    INTERNAL = "internal"
    DATA = "data"


TIER_ORDER: tuple[Tier, ...] = (Tier.EXTERNAL, Tier.DMZ, Tier.INTERNAL, Tier.DATA)

_TIER_LABELS: dict[str, str] = {
    Tier.EXTERNAL: "외부 (External)",
    Tier.DMZ: "DMZ",
    Tier.INTERNAL: "내부망 (Internal)",
    Tier.DATA: "데이터 (Data)",
}


def tier_label(tier: str) -> str:
    """Return the display label for *tier*, or *tier* itself if unknown."""
    return _TIER_LABELS.get(tier, tier)


class FlowType(StrEnum):
    """Semantic kind of a connection."""

    REQUEST = "request"
    RESPONSE = "response"
    SYNC = "sync"
    BLOCKED = "blocked"
    ENCRYPTED = "encrypted"
    WAN_LINK = "wan-link"
    WIRELESS = "wireless"
    TUNNEL = "tunnel"


class NodeCategory(StrEnum):
    """Component categories used for grouping and node styling."""

    SECURITY = "security"
    NETWORK = "network"
    COMPUTE = "compute"
    CLOUD = "cloud"
    STORAGE = "storage"
    AUTH = "auth"
    TELECOM = "telecom"
    WAN = "wan"
    EXTERNAL = "external"


class CommandType(StrEnum):
    """Coarse intent of a free-text request."""

    CREATE = "create"
    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    QUERY = "query"


class NodeType(StrEnum):
    """Every component type known to the catalog."""

    # External
    USER = "user"
    INTERNET = "internet"

    # Security
    FIREWALL = "firewall"
    WAF = "waf"
    IDS_IPS = "ids-ips"
    VPN_GATEWAY = "vpn-gateway"
    NAC = "nac"
    DLP = "dlp"

    # Network
    ROUTER = "router"
    SWITCH_L2 = "switch-l2"
    SWITCH_L3 = "switch-l3"
    LOAD_BALANCER = "load-balancer"
    SD_WAN = "sd-wan"
    DNS = "dns"
    CDN = "cdn"

    # Compute
    WEB_SERVER = "web-server"
    APP_SERVER = "app-server"
    DB_SERVER = "db-server"
    CONTAINER = "container"
    VM = "vm"
    KUBERNETES = "kubernetes"

    # Cloud
    AWS_VPC = "aws-vpc"
    AZURE_VNET = "azure-vnet"
    GCP_NETWORK = "gcp-network"
    PRIVATE_CLOUD = "private-cloud"

    # Storage
    SAN_NAS = "san-nas"
    OBJECT_STORAGE = "object-storage"
    BACKUP = "backup"
    CACHE = "cache"
    STORAGE = "storage"

    # Auth
    LDAP_AD = "ldap-ad"
    SSO = "sso"
    MFA = "mfa"
    IAM = "iam"

    # Telecom
    CENTRAL_OFFICE = "central-office"
    BASE_STATION = "base-station"
    OLT = "olt"
    CUSTOMER_PREMISE = "customer-premise"
    IDC = "idc"

    # WAN
    PE_ROUTER = "pe-router"
    P_ROUTER = "p-router"
    MPLS_NETWORK = "mpls-network"
    DEDICATED_LINE = "dedicated-line"
    METRO_ETHERNET = "metro-ethernet"
    CORPORATE_INTERNET = "corporate-internet"
    VPN_SERVICE = "vpn-service"
    SD_WAN_SERVICE = "sd-wan-service"
    PRIVATE_5G = "private-5g"
    CORE_NETWORK = "core-network"
    UPF = "upf"
    RING_NETWORK = "ring-network"
