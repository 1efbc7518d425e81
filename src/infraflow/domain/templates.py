"""Architecture templates — ready-made specifications for common topologies.

``parse_text`` looks for a template keyword before falling back to
component detection, so "3-tier web architecture" yields the full
reference topology instead of a three-node chain.

Template keywords never overlap catalog keywords (no template keyword
equals or is contained in a component keyword): text that names a
single component is always left to component detection.
"""

from __future__ import annotations

import re
from functools import cache
from typing import TypeAlias

from infraflow.domain.spec import Connection, Node, Specification
from infraflow.domain.types import FlowType, NodeType, Tier

# Short ASCII keywords ("dr", "api", "iot") only match as whole words.
_SHORT_KEYWORD = 4

# (node id, node type, label, zone or None)
_NodeRow: TypeAlias = tuple[str, NodeType, str, str | None]
# (source, target, flow type, label or None)
_ConnRow: TypeAlias = tuple[str, str, FlowType, str | None]


def _template(
    name: str,
    description: str,
    zones: dict[str, Tier],
    nodes: list[_NodeRow],
    connections: list[_ConnRow],
) -> Specification:
    return Specification(
        name=name,
        description=description,
        nodes=[
            Node(
                id=node_id,
                type=node_type,
                label=label,
                zone=zone,
                tier=zones[zone] if zone is not None else None,
            )
            for node_id, node_type, label, zone in nodes
        ],
        connections=[
            Connection(source=s, target=t, flow_type=flow, label=label)
            for s, t, flow, label in connections
        ],
    )


_T = NodeType
_F = FlowType
_REQ = FlowType.REQUEST

TEMPLATES: dict[str, Specification] = {
    "3tier": _template(
        "3tier",
        "3-Tier Web Architecture",
        {"external": Tier.EXTERNAL, "dmz": Tier.DMZ, "web": Tier.INTERNAL,
         "app": Tier.INTERNAL, "db": Tier.DATA},
        [
            ("user", _T.USER, "User", None),
            ("cdn", _T.CDN, "CDN", "external"),
            ("firewall", _T.FIREWALL, "Firewall", "dmz"),
            ("waf", _T.WAF, "WAF", "dmz"),
            ("lb", _T.LOAD_BALANCER, "Load Balancer", "dmz"),
            ("web1", _T.WEB_SERVER, "Web Server 1", "web"),
            ("web2", _T.WEB_SERVER, "Web Server 2", "web"),
            ("app1", _T.APP_SERVER, "App Server 1", "app"),
            ("app2", _T.APP_SERVER, "App Server 2", "app"),
            ("db", _T.DB_SERVER, "Database", "db"),
        ],
        [
            ("user", "cdn", _REQ, None),
            ("cdn", "firewall", _REQ, None),
            ("firewall", "waf", _REQ, None),
            ("waf", "lb", _REQ, None),
            ("lb", "web1", _REQ, None),
            ("lb", "web2", _REQ, None),
            ("web1", "app1", _REQ, None),
            ("web2", "app2", _REQ, None),
            ("app1", "db", _REQ, None),
            ("app2", "db", _REQ, None),
        ],
    ),
    "vpn": _template(
        "vpn",
        "VPN + Internal Network",
        {"external": Tier.EXTERNAL, "dmz": Tier.DMZ, "internal": Tier.INTERNAL},
        [
            ("user", _T.USER, "Remote User", None),
            ("internet", _T.INTERNET, "Internet", "external"),
            ("vpn", _T.VPN_GATEWAY, "VPN Gateway", "dmz"),
            ("firewall", _T.FIREWALL, "Internal Firewall", "dmz"),
            ("router", _T.ROUTER, "Core Router", "internal"),
            ("server1", _T.APP_SERVER, "Internal Server 1", "internal"),
            ("server2", _T.APP_SERVER, "Internal Server 2", "internal"),
            ("ldap", _T.LDAP_AD, "LDAP/AD", "internal"),
        ],
        [
            ("user", "internet", _F.ENCRYPTED, None),
            ("internet", "vpn", _F.ENCRYPTED, None),
            ("vpn", "firewall", _REQ, None),
            ("firewall", "router", _REQ, None),
            ("router", "server1", _REQ, None),
            ("router", "server2", _REQ, None),
            ("vpn", "ldap", _REQ, "Auth"),
        ],
    ),
    "k8s": _template(
        "k8s",
        "Kubernetes Cluster",
        {"k8s": Tier.INTERNAL, "storage": Tier.DATA},
        [
            ("user", _T.USER, "User", None),
            ("ingress", _T.LOAD_BALANCER, "Ingress Controller", "k8s"),
            ("svc", _T.KUBERNETES, "Service", "k8s"),
            ("pod1", _T.CONTAINER, "Pod 1", "k8s"),
            ("pod2", _T.CONTAINER, "Pod 2", "k8s"),
            ("pod3", _T.CONTAINER, "Pod 3", "k8s"),
            ("pv", _T.STORAGE, "Persistent Volume", "storage"),
            ("db", _T.DB_SERVER, "Database", "storage"),
        ],
        [
            ("user", "ingress", _REQ, None),
            ("ingress", "svc", _REQ, None),
            ("svc", "pod1", _REQ, None),
            ("svc", "pod2", _REQ, None),
            ("svc", "pod3", _REQ, None),
            ("pod1", "pv", _F.SYNC, None),
            ("pod2", "db", _REQ, None),
        ],
    ),
    "simple-waf": _template(
        "simple-waf",
        "WAF + Load Balancer + Web",
        {"dmz": Tier.DMZ, "web": Tier.INTERNAL},
        [
            ("user", _T.USER, "User", None),
            ("waf", _T.WAF, "WAF", "dmz"),
            ("lb", _T.LOAD_BALANCER, "Load Balancer", "dmz"),
            ("web1", _T.WEB_SERVER, "Web Server 1", "web"),
            ("web2", _T.WEB_SERVER, "Web Server 2", "web"),
        ],
        [
            ("user", "waf", _REQ, None),
            ("waf", "lb", _REQ, None),
            ("lb", "web1", _REQ, None),
            ("lb", "web2", _REQ, None),
        ],
    ),
    "hybrid": _template(
        "hybrid",
        "Cloud Hybrid",
        {"cloud": Tier.EXTERNAL, "hybrid": Tier.DMZ, "onprem": Tier.INTERNAL},
        [
            ("user", _T.USER, "User", None),
            ("cdn", _T.CDN, "CDN", None),
            ("aws", _T.AWS_VPC, "AWS VPC", "cloud"),
            ("alb", _T.LOAD_BALANCER, "ALB", "cloud"),
            ("ec2", _T.VM, "EC2 Instance", "cloud"),
            ("vpn", _T.VPN_GATEWAY, "VPN Gateway", "hybrid"),
            ("onprem-fw", _T.FIREWALL, "On-Premise FW", "onprem"),
            ("onprem-db", _T.DB_SERVER, "On-Premise DB", "onprem"),
        ],
        [
            ("user", "cdn", _REQ, None),
            ("cdn", "alb", _REQ, None),
            ("alb", "ec2", _REQ, None),
            ("ec2", "vpn", _F.ENCRYPTED, None),
            ("vpn", "onprem-fw", _F.ENCRYPTED, None),
            ("onprem-fw", "onprem-db", _REQ, None),
        ],
    ),
    "microservices": _template(
        "microservices",
        "Microservices Architecture",
        {"gateway": Tier.DMZ, "services": Tier.INTERNAL, "infra": Tier.INTERNAL,
         "data": Tier.DATA},
        [
            ("user", _T.USER, "User", None),
            ("api-gw", _T.LOAD_BALANCER, "API Gateway", "gateway"),
            ("auth-svc", _T.CONTAINER, "Auth Service", "services"),
            ("user-svc", _T.CONTAINER, "User Service", "services"),
            ("order-svc", _T.CONTAINER, "Order Service", "services"),
            ("payment-svc", _T.CONTAINER, "Payment Service", "services"),
            ("msg-queue", _T.CACHE, "Message Queue", "infra"),
            ("user-db", _T.DB_SERVER, "User DB", "data"),
            ("order-db", _T.DB_SERVER, "Order DB", "data"),
        ],
        [
            ("user", "api-gw", _REQ, None),
            ("api-gw", "auth-svc", _REQ, None),
            ("api-gw", "user-svc", _REQ, None),
            ("api-gw", "order-svc", _REQ, None),
            ("order-svc", "msg-queue", _F.SYNC, None),
            ("msg-queue", "payment-svc", _F.SYNC, None),
            ("user-svc", "user-db", _REQ, None),
            ("order-svc", "order-db", _REQ, None),
        ],
    ),
    "zero-trust": _template(
        "zero-trust",
        "Zero Trust Architecture",
        {"identity": Tier.EXTERNAL, "access": Tier.DMZ, "security": Tier.DMZ,
         "workload": Tier.INTERNAL},
        [
            ("user", _T.USER, "User", None),
            ("idp", _T.SSO, "Identity Provider", "identity"),
            ("mfa", _T.MFA, "MFA", "identity"),
            ("ztna", _T.VPN_GATEWAY, "ZTNA Gateway", "access"),
            ("policy", _T.FIREWALL, "Policy Engine", "access"),
            ("dlp", _T.DLP, "DLP", "security"),
            ("app", _T.APP_SERVER, "Application", "workload"),
            ("data", _T.DB_SERVER, "Data Store", "workload"),
        ],
        [
            ("user", "idp", _REQ, "1. Authenticate"),
            ("idp", "mfa", _REQ, "2. MFA"),
            ("mfa", "ztna", _F.ENCRYPTED, "3. Verify"),
            ("ztna", "policy", _REQ, "4. Policy Check"),
            ("policy", "dlp", _REQ, "5. DLP Scan"),
            ("dlp", "app", _F.ENCRYPTED, "6. Access"),
            ("app", "data", _F.ENCRYPTED, None),
        ],
    ),
    "dr": _template(
        "dr",
        "Disaster Recovery Architecture",
        {"global": Tier.EXTERNAL, "primary": Tier.INTERNAL, "dr": Tier.INTERNAL},
        [
            ("user", _T.USER, "User", None),
            ("dns", _T.DNS, "Global DNS", "global"),
            ("lb-primary", _T.LOAD_BALANCER, "Primary LB", "primary"),
            ("app-primary", _T.APP_SERVER, "Primary App", "primary"),
            ("db-primary", _T.DB_SERVER, "Primary DB", "primary"),
            ("lb-dr", _T.LOAD_BALANCER, "DR LB", "dr"),
            ("app-dr", _T.APP_SERVER, "DR App", "dr"),
            ("db-dr", _T.DB_SERVER, "DR DB", "dr"),
        ],
        [
            ("user", "dns", _REQ, None),
            ("dns", "lb-primary", _REQ, "Active"),
            ("dns", "lb-dr", _F.BLOCKED, "Standby"),
            ("lb-primary", "app-primary", _REQ, None),
            ("app-primary", "db-primary", _REQ, None),
            ("lb-dr", "app-dr", _REQ, None),
            ("app-dr", "db-dr", _REQ, None),
            ("db-primary", "db-dr", _F.SYNC, "Replication"),
        ],
    ),
    "api": _template(
        "api",
        "API Backend Architecture",
        {"edge": Tier.EXTERNAL, "security": Tier.DMZ, "gateway": Tier.DMZ,
         "api": Tier.INTERNAL, "data": Tier.DATA},
        [
            ("client", _T.USER, "API Client", None),
            ("cdn", _T.CDN, "CDN/Edge", "edge"),
            ("waf", _T.WAF, "WAF", "security"),
            ("rate-limit", _T.FIREWALL, "Rate Limiter", "security"),
            ("api-gw", _T.LOAD_BALANCER, "API Gateway", "gateway"),
            ("api-v1", _T.APP_SERVER, "API v1", "api"),
            ("api-v2", _T.APP_SERVER, "API v2", "api"),
            ("cache", _T.CACHE, "Redis Cache", "data"),
            ("db", _T.DB_SERVER, "PostgreSQL", "data"),
        ],
        [
            ("client", "cdn", _REQ, None),
            ("cdn", "waf", _REQ, None),
            ("waf", "rate-limit", _REQ, None),
            ("rate-limit", "api-gw", _REQ, None),
            ("api-gw", "api-v1", _REQ, None),
            ("api-gw", "api-v2", _REQ, None),
            ("api-v1", "cache", _REQ, None),
            ("api-v2", "cache", _REQ, None),
            ("cache", "db", _REQ, None),
        ],
    ),
    "iot": _template(
        "iot",
        "IoT Architecture",
        {"edge": Tier.EXTERNAL, "messaging": Tier.DMZ, "processing": Tier.INTERNAL,
         "data": Tier.DATA, "presentation": Tier.INTERNAL},
        [
            ("device", _T.USER, "IoT Device", None),
            ("gateway", _T.ROUTER, "IoT Gateway", "edge"),
            ("mqtt", _T.CACHE, "MQTT Broker", "messaging"),
            ("stream", _T.APP_SERVER, "Stream Processor", "processing"),
            ("analytics", _T.APP_SERVER, "Analytics Engine", "processing"),
            ("timeseries", _T.DB_SERVER, "TimeSeries DB", "data"),
            ("storage", _T.STORAGE, "Data Lake", "data"),
            ("dashboard", _T.WEB_SERVER, "Dashboard", "presentation"),
        ],
        [
            ("device", "gateway", _REQ, None),
            ("gateway", "mqtt", _F.SYNC, None),
            ("mqtt", "stream", _F.SYNC, None),
            ("stream", "timeseries", _REQ, None),
            ("stream", "analytics", _F.SYNC, None),
            ("analytics", "storage", _REQ, None),
            ("timeseries", "dashboard", _F.RESPONSE, None),
            ("storage", "dashboard", _F.RESPONSE, None),
        ],
    ),
}

# Checked in order; the first template with a keyword in the text wins.
TEMPLATE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "3tier": ("3티어", "3-tier", "3tier", "3 tier", "웹 아키텍처", "web architecture", "3계층"),
    "vpn": ("내부망", "internal network", "원격 접속", "remote access", "사내망"),
    "k8s": ("pod", "파드"),
    "simple-waf": (),
    "hybrid": ("hybrid", "하이브리드", "on-premise", "온프레미스"),
    "microservices": ("마이크로서비스", "microservice", "msa", "api gateway", "서비스 메시"),
    "zero-trust": ("제로트러스트", "zero trust", "ztna", "제로 트러스트"),
    "dr": ("dr", "disaster recovery", "재해복구", "이중화", "failover", "ha", "high availability"),
    "api": ("api", "rest", "backend", "백엔드", "restful", "graphql"),
    "iot": ("iot", "사물인터넷", "mqtt", "sensor", "센서"),
}


def available_templates() -> list[str]:
    return list(TEMPLATES)


def get_template(name: str) -> Specification | None:
    """Template by id, or None."""
    return TEMPLATES.get(name)


def _keyword_regex(keyword: str) -> re.Pattern[str]:
    escaped = re.escape(keyword)
    if keyword.isascii() and len(keyword) <= _SHORT_KEYWORD:
        return re.compile(rf"(?<![a-z0-9]){escaped}(?![a-z0-9])")
    return re.compile(escaped)


@cache
def _compiled() -> tuple[tuple[str, re.Pattern[str]], ...]:
    return tuple(
        (template_id, _keyword_regex(keyword))
        for template_id, keywords in TEMPLATE_KEYWORDS.items()
        for keyword in keywords
    )


def match_template(normalized: str) -> str | None:
    """Id of the first template whose keyword appears in *normalized* text."""
    for template_id, regex in _compiled():
        if regex.search(normalized):
            return template_id
    return None
