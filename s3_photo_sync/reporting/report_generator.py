"""
Report generator for sync batch results.
"""
import json
from pathlib import Path
from datetime import datetime

from s3_photo_sync.models import SyncBatch, TaskState


class ReportGenerator:
    """Renders a finished SyncBatch as a text or JSON report."""

    def __init__(self, batch: SyncBatch, bucket: str):
        """
        Initialize report generator.

        Args:
            batch: Finished (or aborted) sync batch
            bucket: Bucket the batch uploaded to
        """
        self.batch = batch
        self.bucket = bucket

    def _format_size(self, bytes_size: float) -> str:
        """Format bytes to human-readable size."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes_size < 1024.0:
                return f"{bytes_size:.2f} {unit}"
            bytes_size /= 1024.0
        return f"{bytes_size:.2f} PB"

    def _format_duration(self, seconds) -> str:
        """Format duration to human-readable string."""
        if seconds is None:
            return "N/A"

        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        elif minutes > 0:
            return f"{minutes}m {secs}s"
        else:
            return f"{secs}s"

    def _success_rate(self) -> float:
        if self.batch.total == 0:
            return 0.0
        return (self.batch.succeeded_count / self.batch.total) * 100.0

    def generate_text_report(self) -> str:
        """Generate a text-formatted report."""
        batch = self.batch
        lines = []

        lines.append("=" * 60)
        lines.append("S3 PHOTO SYNC REPORT")
        lines.append("=" * 60)
        lines.append(f"Batch:                 {batch.batch_id}")
        lines.append(f"Bucket:                {self.bucket}")
        lines.append(f"Started:               {datetime.fromtimestamp(batch.started_at).strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Duration:              {self._format_duration(batch.duration)}")
        lines.append("")
        lines.append(f"Status:                {batch.summary()}")
        lines.append(f"Requested:             {batch.total}")
        lines.append(f"Uploaded:              {batch.succeeded_count}")
        lines.append(f"Failed:                {batch.failed_count}")
        lines.append(f"Success Rate:          {self._success_rate():.1f}%")
        if batch.bytes_uploaded:
            lines.append(f"Total Uploaded Size:   {self._format_size(batch.bytes_uploaded)}")

        failed = [task for task in batch.tasks if task.state == TaskState.FAILED]
        if failed:
            lines.append("")
            lines.append("-" * 60)
            lines.append("FAILED ITEMS")
            lines.append("-" * 60)
            for task in failed:
                lines.append(f"  {task.reference}: {task.error}")
            lines.append("")
            lines.append("Select the failed items again to retry; they are re-staged from scratch.")

        lines.append("")
        lines.append("=" * 60)
        lines.append(f"Report generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("=" * 60)

        return "\n".join(lines)

    def generate_json_report(self) -> str:
        """Generate a JSON report."""
        report = self.batch.to_dict()
        report['bucket'] = self.bucket
        report['success_rate_percent'] = self._success_rate()
        return json.dumps(report, indent=2)

    def save_report(self, output_path: Path, format: str = 'text') -> Path:
        """
        Save report to file.

        Args:
            output_path: Where to write the report
            format: Report format ('text' or 'json')

        Returns:
            Path to saved report file
        """
        if format == 'json':
            content = self.generate_json_report()
        elif format == 'text':
            content = self.generate_text_report()
        else:
            raise ValueError(f"Unknown report format: {format}")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)

        return output_path
