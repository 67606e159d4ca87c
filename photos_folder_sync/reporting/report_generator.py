"""
Report generator for sync results.
"""
import json
from pathlib import Path
from typing import Optional

from photos_folder_sync.engine import DIRECTORY_CANCELLED, DIRECTORY_FAILED, SyncSummary


class ReportGenerator:
    """Renders a SyncSummary as text or JSON."""

    def __init__(self, summary: SyncSummary, log_file: Optional[Path] = None):
        """
        Args:
            summary: Result of SyncEngine.run
            log_file: Path to the run's log file, mentioned in the report
        """
        self.summary = summary
        self.log_file = log_file

    def _format_duration(self, seconds: Optional[float]) -> str:
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

    def generate_text_report(self) -> str:
        """Per-directory summary followed by the overall totals."""
        s = self.summary
        lines = []

        lines.append("=" * 80)
        lines.append("GOOGLE PHOTOS FOLDER SYNC REPORT")
        lines.append("=" * 80)
        lines.append(f"Root:           {s.root}")
        lines.append(f"Start Time:     {s.start_time.strftime('%Y-%m-%d %H:%M:%S')}")
        if s.end_time:
            lines.append(f"End Time:       {s.end_time.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Duration:       {self._format_duration(s.get_duration())}")
        lines.append("")

        lines.append("DIRECTORIES")
        lines.append("-" * 80)
        for result in s.all_results:
            if result.status == DIRECTORY_FAILED:
                album = "FAILED"
            elif result.album_id is None:
                album = "no album"
            elif result.album_created:
                album = f"created album '{result.album_title}'"
            else:
                album = f"reused album '{result.album_title}'"
            if result.status == DIRECTORY_CANCELLED:
                album += " (cancelled)"

            lines.append(f"{result.name}: {album}")
            lines.append(
                f"  uploaded: {result.uploaded}  skipped: {result.skipped}  failed: {result.failed}"
            )
            if result.error:
                lines.append(f"  error: {result.error}")
            for outcome in result.files:
                if outcome.error:
                    lines.append(f"    {outcome.file_name}: {outcome.error}")
        if not s.all_results:
            lines.append("(nothing to sync)")
        lines.append("")

        lines.append("TOTALS")
        lines.append("-" * 80)
        lines.append(f"  Albums Created:        {s.albums_created}")
        lines.append(f"  Albums Reused:         {s.albums_reused}")
        if s.directories_failed:
            lines.append(f"  Directories Failed:    {s.directories_failed}")
        lines.append(f"  Files Uploaded:        {s.files_uploaded}")
        lines.append(f"  Files Skipped:         {s.files_skipped}")
        lines.append(f"  Files Failed:          {s.files_failed}")
        if self.log_file:
            lines.append(f"  Log File:              {self.log_file}")
        lines.append("")
        lines.append("Sync cancelled." if s.cancelled else "Completed.")
        return "\n".join(lines)

    def generate_json_report(self) -> str:
        return json.dumps(self.summary.to_dict(), indent=2)

    def save_report(self, output_path: Path, format: str = 'text') -> Path:
        """
        Save report to file.

        Args:
            output_path: Destination file
            format: Report format ('text' or 'json')

        Returns:
            Path to saved report file
        """
        if format == 'json':
            content = self.generate_json_report()
        else:
            content = self.generate_text_report()

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)

        return output_path
