"""
Preflight checks to verify the staging area and object store before syncing.
"""
import shutil
import sys
import logging
from pathlib import Path
from typing import Callable, List, Tuple, Optional

from s3_photo_sync.exceptions import CriticalInitError
from s3_photo_sync.storage.s3_client import S3ObjectStoreClient

logger = logging.getLogger(__name__)

LOW_DISK_SPACE_GB = 1.0


class HealthCheckResult:
    """Result of a health check."""

    def __init__(self, name: str, passed: bool, message: str, severity: str = "error"):
        """
        Initialize health check result.

        Args:
            name: Name of the check
            passed: Whether the check passed
            message: Human-readable message
            severity: "error" or "warning"
        """
        self.name = name
        self.passed = passed
        self.message = message
        self.severity = severity


class HealthChecker:
    """Performs health checks before a sync."""

    def __init__(self, staging_dir: Path,
                 client_factory: Optional[Callable[[], S3ObjectStoreClient]] = None):
        """
        Initialize health checker.

        Args:
            staging_dir: Staging directory (for write and disk space checks)
            client_factory: Object store client factory; store checks are skipped if None
        """
        self.staging_dir = Path(staging_dir)
        self.client_factory = client_factory
        self.results: List[HealthCheckResult] = []

    def check_all(self) -> Tuple[bool, List[HealthCheckResult]]:
        """
        Run all health checks.

        Returns:
            Tuple of (all errors passed, list of results)
        """
        self.results = []

        self.check_python_version()
        self.check_write_permissions()
        self.check_disk_space()
        if self.client_factory is not None:
            self.check_object_store()

        all_passed = all(r.passed or r.severity == "warning" for r in self.results)
        return all_passed, self.results

    def check_python_version(self) -> None:
        """Check Python version is 3.9+."""
        version = sys.version_info
        passed = (version.major, version.minor) >= (3, 9)
        message = f"Python {version.major}.{version.minor}.{version.micro}"
        if not passed:
            message += " detected. Python 3.9+ required."
        self.results.append(HealthCheckResult("Python Version", passed, message))

    def check_write_permissions(self) -> None:
        """Check the staging directory exists and is writable."""
        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            test_file = self.staging_dir / '.health_check_test'
            test_file.write_text('test')
            test_file.unlink()

            self.results.append(HealthCheckResult(
                "Staging Directory",
                True,
                f"Can write to {self.staging_dir}"
            ))
        except OSError as e:
            self.results.append(HealthCheckResult(
                "Staging Directory",
                False,
                f"Cannot write to {self.staging_dir}: {e}"
            ))

    def check_disk_space(self) -> None:
        """Warn when the staging filesystem is nearly full."""
        try:
            stat = shutil.disk_usage(self.staging_dir)
        except OSError as e:
            self.results.append(HealthCheckResult(
                "Disk Space",
                False,
                f"Could not check disk space: {e}",
                severity="warning"
            ))
            return

        available_gb = stat.free / (1024 ** 3)
        if available_gb < LOW_DISK_SPACE_GB:
            self.results.append(HealthCheckResult(
                "Disk Space",
                False,
                f"Low disk space: {available_gb:.1f} GB available for staging",
                severity="warning"
            ))
        else:
            self.results.append(HealthCheckResult(
                "Disk Space",
                True,
                f"{available_gb:.1f} GB available"
            ))

    def check_object_store(self) -> None:
        """Check credentials and bucket access."""
        try:
            client = self.client_factory()
        except CriticalInitError as e:
            self.results.append(HealthCheckResult("Object Store Credentials", False, str(e)))
            return

        self.results.append(HealthCheckResult("Object Store Credentials", True, "Client created"))

        if client.check_bucket():
            self.results.append(HealthCheckResult(
                "Bucket Access", True, f"Bucket {client.bucket} is reachable"
            ))
        else:
            self.results.append(HealthCheckResult(
                "Bucket Access", False, f"Cannot access bucket {client.bucket}"
            ))

    def print_results(self) -> None:
        """Print health check results."""
        print("\n" + "=" * 60)
        print("Health Check Results")
        print("=" * 60)

        for result in self.results:
            status = "✓ PASS" if result.passed else "✗ FAIL"
            print(f"{status}: {result.name}")
            print(f"  {result.message}")

        print("=" * 60)

        failed = [r for r in self.results if not r.passed]
        if not failed:
            print("All checks passed! ✓")
            return

        errors = [r for r in failed if r.severity == "error"]
        warnings = [r for r in failed if r.severity == "warning"]
        if errors:
            print(f"\n{len(errors)} error(s) must be fixed before syncing.")
        if warnings:
            print(f"{len(warnings)} warning(s) - sync may still work but could fail.")
