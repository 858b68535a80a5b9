"""Collection of CertificateSigningRequest state."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .base import BaseHandler, LogEntryMetadata, build_metadata


@dataclass(kw_only=True)
class CertificateSigningRequestData(LogEntryMetadata):
    """Logged state of a CertificateSigningRequest."""

    status: str = ""
    signer_name: str = ""
    expiration_seconds: int | None = None
    usages: list[str] = field(default_factory=list)


class CertificateSigningRequestHandler(BaseHandler):
    """Collects CertificateSigningRequests from the cache."""

    def setup_informer(self, factory, logger, resync_period=0):
        """Attach the shared CertificateSigningRequest store."""
        self.setup_base_informer(factory.store("certificatesigningrequests"), logger)

    def collect(self, namespaces):
        """Return one entry per cached request; they are cluster scoped."""
        list_time = datetime.now(timezone.utc)
        return [
            replace(self.create_log_entry(csr), timestamp=list_time)
            for csr in self.objects("CertificateSigningRequest")
        ]

    def create_log_entry(self, csr):
        """Build the log entry; the status is the type of the first condition."""
        spec = csr.get("spec") or {}
        conditions = (csr.get("status") or {}).get("conditions") or []
        return CertificateSigningRequestData(
            **build_metadata(csr, "certificatesigningrequest"),
            status=str(conditions[0].get("type") or "") if conditions else "",
            signer_name=spec.get("signerName") or "",
            expiration_seconds=spec.get("expirationSeconds"),
            usages=[str(usage) for usage in spec.get("usages") or []],
        )