"""Console report formatting for check results."""

from .schemas import VulnerabilityRecord


def format_vulnerability(vuln: VulnerabilityRecord) -> str:
    """Render one advisory as an indented multi-line block.

    Args:
        vuln: Advisory to render.

    Returns:
        Lines for CVE list and severity, description, and patched range.
    """
    severity = "" if vuln.severity == "unknown" else f"({vuln.severity.upper()})"
    cve_list = ", ".join(vuln.cve) if vuln.cve else "No CVE"
    description = vuln.summary or "No description"
    lines = [
        f"{cve_list} {severity}".rstrip(),
        f"Description: {description}",
        f"Patched versions: {vuln.patched}",
    ]
    if vuln.ref:
        lines.append(f"Reference: {vuln.ref}")
    return "\n  ".join(lines)


def format_header(version: str, platform: str) -> str:
    return "\n".join(
        [
            "Node.js Security Vulnerability Check",
            "",
            f"Current Node.js version: {version}",
            f"Platform: {platform}",
            "",
        ]
    )


def format_eol(version: str) -> str:
    return "\n".join(
        [
            "[FAIL] Node.js version is end-of-life.",
            "",
            f"{version} is end-of-life. There are high chances of being vulnerable.",
            "RECOMMENDED ACTION: Upgrade to a supported version.",
        ]
    )


def format_report(version: str, vulnerabilities: list[VulnerabilityRecord]) -> str:
    """Render the vulnerability verdict for a version.

    Args:
        version: Version that was checked.
        vulnerabilities: Advisories that apply, in feed order.

    Returns:
        ``[PASS]`` line when empty, otherwise a ``[VULNERABLE]`` block.
    """
    if not vulnerabilities:
        return f"[PASS] Node.js {version} has no known vulnerabilities."

    out = [f"[VULNERABLE] Node.js {version} has {len(vulnerabilities)} known CVE(s):", ""]
    for vuln in vulnerabilities:
        out.append(f"  {format_vulnerability(vuln)}")
        out.append("")
    out.append("RECOMMENDED ACTION: Upgrade to a patched version.")
    return "\n".join(out)
