"""Component catalog — the single source of truth for component types.

Every component type carries its display labels (English and Korean),
category, default tier and the bilingual keywords used by text
detection. The pattern registry and the layout engine's type-to-tier
lookup are both generated from :data:`COMPONENT_CATALOG`, so the two
can never drift apart.

INVARIANT: Row order is registry order. A component whose keywords
overlap a more generic one (``switch-l3`` vs ``switch-l2``,
``pe-router`` vs ``router``, ``corporate-internet`` vs ``internet``)
must appear first.
"""

from __future__ import annotations

from dataclasses import dataclass

from infraflow.domain.types import NodeCategory, NodeType, Tier


@dataclass(frozen=True)
class ComponentEntry:
    """One row of the component catalog."""

    type: NodeType
    label: str
    label_ko: str
    category: NodeCategory
    tier: Tier
    keywords: tuple[str, ...]


def _entry(
    node_type: NodeType,
    label: str,
    label_ko: str,
    category: NodeCategory,
    tier: Tier,
    *keywords: str,
) -> ComponentEntry:
    return ComponentEntry(
        type=node_type,
        label=label,
        label_ko=label_ko,
        category=category,
        tier=tier,
        keywords=tuple(k.lower() for k in keywords),
    )


_T = NodeType
_C = NodeCategory

COMPONENT_CATALOG: tuple[ComponentEntry, ...] = (
    # --- Telecom ---
    _entry(_T.CENTRAL_OFFICE, "Central Office", "국사", _C.TELECOM, Tier.DMZ,
           "central office", "국사", "전화국"),
    _entry(_T.BASE_STATION, "Base Station", "기지국", _C.TELECOM, Tier.EXTERNAL,
           "base station", "기지국", "gnodeb", "enodeb", "gnb", "enb"),
    _entry(_T.OLT, "OLT", "광선로 단말", _C.TELECOM, Tier.DMZ,
           "optical line terminal", "olt", "광선로"),
    _entry(_T.CUSTOMER_PREMISE, "Customer Premise", "고객 구내", _C.TELECOM, Tier.EXTERNAL,
           "customer premise", "cpe", "고객 구내", "고객구내", "고객 댁내"),
    _entry(_T.IDC, "IDC", "IDC", _C.TELECOM, Tier.INTERNAL,
           "idc", "data center", "datacenter", "데이터센터", "데이터 센터"),
    # --- WAN ---
    _entry(_T.PE_ROUTER, "PE Router", "PE 라우터", _C.WAN, Tier.DMZ,
           "pe-router", "pe router", "pe 라우터", "provider edge"),
    _entry(_T.P_ROUTER, "P Router", "P 라우터", _C.WAN, Tier.INTERNAL,
           "p-router", "p router", "p 라우터", "provider core"),
    _entry(_T.MPLS_NETWORK, "MPLS Network", "MPLS 망", _C.WAN, Tier.INTERNAL,
           "mpls"),
    _entry(_T.DEDICATED_LINE, "Dedicated Line", "전용회선", _C.WAN, Tier.DMZ,
           "dedicated line", "leased line", "전용회선", "전용 회선"),
    _entry(_T.METRO_ETHERNET, "Metro Ethernet", "메트로 이더넷", _C.WAN, Tier.DMZ,
           "metro ethernet", "metro-ethernet", "메트로 이더넷", "메트로이더넷"),
    _entry(_T.CORPORATE_INTERNET, "Corporate Internet", "기업인터넷", _C.WAN, Tier.DMZ,
           "corporate internet", "kornet", "기업인터넷", "기업 인터넷"),
    _entry(_T.VPN_SERVICE, "VPN Service", "VPN 서비스", _C.WAN, Tier.INTERNAL,
           "vpn service", "vpn 서비스", "vpn서비스"),
    _entry(_T.SD_WAN_SERVICE, "SD-WAN Service", "SD-WAN 서비스", _C.WAN, Tier.DMZ,
           "sd-wan service", "sd-wan 서비스", "sdwan service"),
    _entry(_T.PRIVATE_5G, "Private 5G", "5G 특화망", _C.WAN, Tier.INTERNAL,
           "private 5g", "5g 특화망", "5g특화망", "이음5g"),
    _entry(_T.CORE_NETWORK, "Core Network", "모바일 코어망", _C.WAN, Tier.INTERNAL,
           "core network", "코어망", "5gc", "epc"),
    _entry(_T.UPF, "UPF", "UPF", _C.WAN, Tier.INTERNAL,
           "upf"),
    _entry(_T.RING_NETWORK, "Ring Network", "링 네트워크", _C.WAN, Tier.DMZ,
           "ring network", "링 네트워크", "링네트워크"),
    # --- External ---
    _entry(_T.USER, "User", "사용자", _C.EXTERNAL, Tier.EXTERNAL,
           "user", "사용자", "유저", "client", "클라이언트"),
    _entry(_T.INTERNET, "Internet", "인터넷", _C.EXTERNAL, Tier.EXTERNAL,
           "internet", "인터넷", "외부망"),
    # --- Security ---
    _entry(_T.WAF, "WAF", "웹방화벽", _C.SECURITY, Tier.DMZ,
           "waf", "web application firewall", "웹방화벽", "웹 방화벽", "웹 애플리케이션 방화벽"),
    _entry(_T.FIREWALL, "Firewall", "방화벽", _C.SECURITY, Tier.DMZ,
           "firewall", "방화벽"),
    _entry(_T.IDS_IPS, "IDS/IPS", "IDS/IPS", _C.SECURITY, Tier.DMZ,
           "ids", "ips", "intrusion", "침입 탐지", "침입탐지", "침입 방지", "침입방지"),
    _entry(_T.VPN_GATEWAY, "VPN Gateway", "VPN 게이트웨이", _C.SECURITY, Tier.DMZ,
           "vpn", "가상사설망"),
    _entry(_T.NAC, "NAC", "NAC", _C.SECURITY, Tier.INTERNAL,
           "nac", "network access control", "네트워크 접근 제어"),
    _entry(_T.DLP, "DLP", "DLP", _C.SECURITY, Tier.INTERNAL,
           "dlp", "data loss prevention", "데이터 유출 방지"),
    # --- Network ---
    _entry(_T.CDN, "CDN", "CDN", _C.NETWORK, Tier.EXTERNAL,
           "cdn", "content delivery", "콘텐츠 전송"),
    _entry(_T.LOAD_BALANCER, "Load Balancer", "로드밸런서", _C.NETWORK, Tier.DMZ,
           "load balancer", "load-balancer", "loadbalancer", "로드밸런서", "로드 밸런서", "부하분산"),
    _entry(_T.ROUTER, "Router", "라우터", _C.NETWORK, Tier.DMZ,
           "router", "라우터"),
    _entry(_T.SWITCH_L3, "L3 Switch", "L3 스위치", _C.NETWORK, Tier.INTERNAL,
           "l3 switch", "switch-l3", "switch l3", "l3 스위치", "l3스위치", "레이어3 스위치"),
    _entry(_T.SWITCH_L2, "L2 Switch", "L2 스위치", _C.NETWORK, Tier.INTERNAL,
           "switch", "스위치"),
    _entry(_T.SD_WAN, "SD-WAN", "SD-WAN", _C.NETWORK, Tier.DMZ,
           "sd-wan", "sdwan", "software defined wan"),
    _entry(_T.DNS, "DNS", "DNS", _C.NETWORK, Tier.DMZ,
           "dns", "domain name", "도메인 네임"),
    # --- Compute ---
    _entry(_T.WEB_SERVER, "Web Server", "웹서버", _C.COMPUTE, Tier.INTERNAL,
           "web server", "web-server", "webserver", "웹서버", "웹 서버", "nginx", "apache"),
    _entry(_T.APP_SERVER, "App Server", "앱서버", _C.COMPUTE, Tier.INTERNAL,
           "app server", "app-server", "appserver", "application server",
           "앱서버", "앱 서버", "애플리케이션 서버", "was 서버", "was서버", "tomcat"),
    _entry(_T.DB_SERVER, "Database", "데이터베이스", _C.COMPUTE, Tier.DATA,
           "database", "db", "데이터베이스", "디비", "mysql", "postgres"),
    _entry(_T.KUBERNETES, "Kubernetes", "쿠버네티스", _C.COMPUTE, Tier.INTERNAL,
           "kubernetes", "k8s", "쿠버네티스"),
    _entry(_T.CONTAINER, "Container", "컨테이너", _C.COMPUTE, Tier.INTERNAL,
           "container", "docker", "컨테이너", "도커"),
    _entry(_T.VM, "VM", "가상머신", _C.COMPUTE, Tier.INTERNAL,
           "virtual machine", "vm", "가상머신", "가상 머신", "가상서버", "가상 서버"),
    # --- Cloud ---
    _entry(_T.AWS_VPC, "AWS VPC", "AWS VPC", _C.CLOUD, Tier.INTERNAL,
           "aws", "vpc"),
    _entry(_T.AZURE_VNET, "Azure VNet", "Azure VNet", _C.CLOUD, Tier.INTERNAL,
           "azure", "vnet"),
    _entry(_T.GCP_NETWORK, "GCP Network", "GCP 네트워크", _C.CLOUD, Tier.INTERNAL,
           "gcp", "google cloud"),
    _entry(_T.PRIVATE_CLOUD, "Private Cloud", "프라이빗 클라우드", _C.CLOUD, Tier.INTERNAL,
           "private cloud", "openstack", "사설 클라우드", "프라이빗 클라우드"),
    # --- Storage ---
    _entry(_T.SAN_NAS, "SAN/NAS", "SAN/NAS", _C.STORAGE, Tier.DATA,
           "san/nas", "nas", "storage area network", "san 스토리지", "네트워크 스토리지"),
    _entry(_T.OBJECT_STORAGE, "Object Storage", "오브젝트 스토리지", _C.STORAGE, Tier.DATA,
           "object storage", "s3", "minio", "오브젝트 스토리지"),
    _entry(_T.BACKUP, "Backup", "백업", _C.STORAGE, Tier.DATA,
           "backup", "백업"),
    _entry(_T.CACHE, "Cache", "캐시", _C.STORAGE, Tier.DATA,
           "cache", "redis", "memcached", "캐시"),
    _entry(_T.STORAGE, "Storage", "스토리지", _C.STORAGE, Tier.DATA,
           "storage", "스토리지", "저장소"),
    # --- Auth ---
    _entry(_T.LDAP_AD, "LDAP/AD", "LDAP/AD", _C.AUTH, Tier.INTERNAL,
           "ldap", "active directory", "액티브 디렉토리", "액티브디렉토리"),
    _entry(_T.SSO, "SSO", "SSO", _C.AUTH, Tier.INTERNAL,
           "sso", "single sign", "싱글 사인온"),
    _entry(_T.MFA, "MFA", "MFA", _C.AUTH, Tier.INTERNAL,
           "mfa", "multi-factor", "multi factor", "2fa", "otp", "다중 인증", "다중인증"),
    _entry(_T.IAM, "IAM", "IAM", _C.AUTH, Tier.INTERNAL,
           "iam", "identity and access"),
)

_BY_TYPE: dict[str, ComponentEntry] = {entry.type.value: entry for entry in COMPONENT_CATALOG}

# Type -> default tier. Shared by the diff engine (new nodes) and layout.
TYPE_TIERS: dict[str, Tier] = {t: entry.tier for t, entry in _BY_TYPE.items()}


def is_known_type(node_type: str) -> bool:
    """Return True if *node_type* is a catalog component type."""
    return node_type in _BY_TYPE


def get_entry(node_type: str) -> ComponentEntry | None:
    """Look up the catalog row for *node_type*."""
    return _BY_TYPE.get(node_type)


def get_tier_for_type(node_type: str) -> Tier:
    """Default tier for *node_type*; unknown types land in ``internal``."""
    return TYPE_TIERS.get(node_type, Tier.INTERNAL)


def get_category_for_type(node_type: str) -> NodeCategory:
    """Category for *node_type*; unknown types are treated as ``external``."""
    entry = _BY_TYPE.get(node_type)
    return entry.category if entry else NodeCategory.EXTERNAL


def get_label_for_type(node_type: str, *, korean: bool = False) -> str:
    """Display label for *node_type*.

    Unknown types fall back to a title-cased rendering of the type
    (``"edge-proxy"`` -> ``"Edge Proxy"``).
    """
    entry = _BY_TYPE.get(node_type)
    if entry is None:
        return node_type.replace("-", " ").title()
    return entry.label_ko if korean else entry.label


def entries_by_category(category: NodeCategory) -> list[ComponentEntry]:
    """All catalog rows in *category*, in registry order."""
    return [entry for entry in COMPONENT_CATALOG if entry.category == category]
