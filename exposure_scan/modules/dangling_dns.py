from __future__ import annotations

import logging
import re
from typing import NamedTuple, Optional, Sequence

from ..models.results import DanglingDnsFinding, DanglingRecord, RiskLevel
from ..utils.concurrency import probe_in_batches
from ..utils.dns import DnsResolver

logger = logging.getLogger(__name__)


class CloudFingerprint(NamedTuple):
    pattern: re.Pattern
    provider: str


def _fp(pattern: str, provider: str) -> CloudFingerprint:
    return CloudFingerprint(re.compile(pattern, re.IGNORECASE), provider)


# CNAME target suffixes of services where an unclaimed resource can be registered by anyone
CLOUD_FINGERPRINTS: tuple[CloudFingerprint, ...] = (
    _fp(r"\.s3\.amazonaws\.com$", "AWS S3"),
    _fp(r"\.s3-website[.-].*\.amazonaws\.com$", "AWS S3 Website"),
    _fp(r"\.elasticbeanstalk\.com$", "AWS Elastic Beanstalk"),
    _fp(r"\.cloudfront\.net$", "AWS CloudFront"),
    _fp(r"\.herokuapp\.com$", "Heroku"),
    _fp(r"\.herokudns\.com$", "Heroku DNS"),
    _fp(r"\.azurewebsites\.net$", "Azure App Service"),
    _fp(r"\.blob\.core\.windows\.net$", "Azure Blob Storage"),
    _fp(r"\.cloudapp\.azure\.com$", "Azure Cloud App"),
    _fp(r"\.trafficmanager\.net$", "Azure Traffic Manager"),
    _fp(r"\.azure-api\.net$", "Azure API Management"),
    _fp(r"\.azureedge\.net$", "Azure CDN"),
    _fp(r"\.azurefd\.net$", "Azure Front Door"),
    _fp(r"\.ghost\.io$", "Ghost"),
    _fp(r"\.myshopify\.com$", "Shopify"),
    _fp(r"\.surge\.sh$", "Surge"),
    _fp(r"\.bitbucket\.io$", "Bitbucket"),
    _fp(r"\.github\.io$", "GitHub Pages"),
    _fp(r"\.gitlab\.io$", "GitLab Pages"),
    _fp(r"\.netlify\.app$", "Netlify"),
    _fp(r"\.fly\.dev$", "Fly.io"),
    _fp(r"\.vercel\.app$", "Vercel"),
    _fp(r"\.pantheonsite\.io$", "Pantheon"),
    _fp(r"\.zendesk\.com$", "Zendesk"),
    _fp(r"\.teamwork\.com$", "Teamwork"),
    _fp(r"\.freshdesk\.com$", "Freshdesk"),
    _fp(r"\.wpengine\.com$", "WP Engine"),
    _fp(r"\.unbounce\.com$", "Unbounce"),
    _fp(r"\.cargocollective\.com$", "Cargo"),
    _fp(r"\.fastly\.net$", "Fastly"),
    _fp(r"\.firebaseapp\.com$", "Firebase"),
    _fp(r"\.web\.app$", "Firebase Hosting"),
    _fp(r"\.appspot\.com$", "Google App Engine"),
    _fp(r"\.storage\.googleapis\.com$", "Google Cloud Storage"),
)

COMMON_SUBDOMAINS: tuple[str, ...] = (
    "www", "mail", "remote", "blog", "webmail", "server", "ns1", "ns2",
    "smtp", "secure", "vpn", "api", "dev", "staging", "test", "portal",
    "admin", "app", "cdn", "cloud", "docs", "ftp", "git", "help",
    "internal", "login", "m", "media", "shop", "status", "store",
    "support", "wiki", "beta", "demo", "dashboard", "auth",
)


def match_provider(
    target: str, fingerprints: Sequence[CloudFingerprint] = CLOUD_FINGERPRINTS
) -> Optional[str]:
    for fingerprint in fingerprints:
        if fingerprint.pattern.search(target):
            return fingerprint.provider
    return None


async def check_subdomain(
    fqdn: str,
    dns: DnsResolver,
    fingerprints: Sequence[CloudFingerprint] = CLOUD_FINGERPRINTS,
) -> Optional[DanglingRecord]:
    cnames = await dns.resolve(fqdn, "CNAME")
    if not cnames:
        return None
    target = cnames[0].rstrip(".").lower()
    if not target:
        return None
    provider = match_provider(target, fingerprints)
    if provider is None:
        return None

    if not await dns.resolve(target, "A"):
        status = "dangling"
    elif not await dns.resolve(fqdn, "A"):
        status = "suspicious"
    else:
        return None
    return DanglingRecord(subdomain=fqdn, cname_target=target, provider=provider, status=status)


def classify(vulnerable: Sequence[DanglingRecord]) -> tuple[RiskLevel, int, str]:
    dangling = sum(1 for v in vulnerable if v.status == "dangling")
    if dangling >= 3:
        return (
            RiskLevel.critical,
            25,
            f"{dangling} dangling DNS records found pointing to unclaimed cloud resources. "
            "Immediate subdomain takeover risk.",
        )
    if dangling >= 1:
        return (
            RiskLevel.high,
            20,
            f"{dangling} dangling DNS record(s) detected. Attackers can claim the cloud resource "
            "and serve content on your subdomain.",
        )
    if vulnerable:
        return (
            RiskLevel.medium,
            10,
            f"{len(vulnerable)} suspicious CNAME(s) pointing to cloud providers. "
            "Verify ownership of these resources.",
        )
    return RiskLevel.low, 0, "No dangling DNS records or subdomain hijacking risks detected."


async def run(
    domain: str,
    dns: DnsResolver,
    labels: Sequence[str] = COMMON_SUBDOMAINS,
    max_subdomains: int = 40,
    batch_size: int = 10,
    fingerprints: Sequence[CloudFingerprint] = CLOUD_FINGERPRINTS,
) -> DanglingDnsFinding:
    subdomains = [f"{label}.{domain}" for label in labels[: max(0, max_subdomains)]]

    async def probe(fqdn: str) -> Optional[DanglingRecord]:
        return await check_subdomain(fqdn, dns, fingerprints)

    vulnerable = await probe_in_batches(subdomains, probe, batch_size=batch_size)
    risk, penalty, details = classify(vulnerable)
    logger.info(
        "dangling dns checked",
        extra={"domain": domain, "checked": len(subdomains), "vulnerable": len(vulnerable), "risk": risk.value},
    )
    return DanglingDnsFinding(
        subdomains_checked=len(subdomains),
        vulnerable=vulnerable,
        risk=risk,
        penalty=penalty,
        details=details,
    )
