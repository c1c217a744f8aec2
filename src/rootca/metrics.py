"""OpenTelemetry metrics for the root CA tooling."""

from opentelemetry import metrics

# Get meter for rootca module
meter = metrics.get_meter("rootca")

# Root CA generation
root_cas_generated_total = meter.create_counter(
    name="rootca_root_cas_generated_total",
    description="Total root CA certificates generated",
    unit="1",
)

root_ca_generation_duration = meter.create_histogram(
    name="rootca_root_ca_generation_duration_seconds",
    description="Root CA generation duration in seconds (key generation included)",
    unit="s",
)

root_ca_generation_failures_total = meter.create_counter(
    name="rootca_root_ca_generation_failures_total",
    description="Total failed root CA generations",
    unit="1",
)

# PEM export
pem_files_written_total = meter.create_counter(
    name="rootca_pem_files_written_total",
    description="Total PEM files written",
    unit="1",
)

# Leaf issuance (openssl)
leaf_certificates_issued_total = meter.create_counter(
    name="rootca_leaf_certificates_issued_total",
    description="Total leaf certificates signed by the root CA",
    unit="1",
)

chain_verifications_total = meter.create_counter(
    name="rootca_chain_verifications_total",
    description="Total leaf chain verifications",
    unit="1",
)


class RootCAMetrics:
    """Facade for root CA metrics with proper labels."""

    def record_root_ca_generated(self, key_bits: int, duration_seconds: float) -> None:
        """Record root CA generation with duration. Labels: key_bits"""
        root_cas_generated_total.add(1, {"key_bits": key_bits})
        root_ca_generation_duration.record(duration_seconds, {"key_bits": key_bits})

    def record_root_ca_failed(self) -> None:
        root_ca_generation_failures_total.add(1)

    def record_pem_written(self, kind: str) -> None:
        """Record a PEM file write. Labels: kind=certificate|private_key"""
        pem_files_written_total.add(1, {"kind": kind})

    def record_leaf_issued(self) -> None:
        leaf_certificates_issued_total.add(1)

    def record_chain_verification(self, result: str) -> None:
        """Record chain verification. Labels: result=valid|invalid"""
        chain_verifications_total.add(1, {"result": result})


# Singleton instance
rootca_metrics = RootCAMetrics()
