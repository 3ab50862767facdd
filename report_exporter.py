"""
Report exporter for VM image selections.
Renders the chosen image and its details as a Markdown document.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from workflow import ImageSelection

NOT_AVAILABLE = "N/A"


def report_filename(selection: ImageSelection, prefix: str, when: Optional[datetime] = None) -> str:
    """Build the report file name for a selection.

    Pattern: ``<prefix>-<publisher>-<offer>-<sku>-<YYYYMMDD>.md`` with the
    image identifiers lower-cased.
    """
    when = when or datetime.now()
    return (
        f"{prefix}-{selection.publisher.lower()}-{selection.offer.lower()}"
        f"-{selection.sku.lower()}-{when.strftime('%Y%m%d')}.md"
    )


def _value(value) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, bool):
        return "Yes" if value else "No"
    # Pipes would end the table cell
    return str(value).replace("|", "\\|")


class ReportExporter:
    """Export an image selection as a Markdown report."""

    def __init__(self, selection: ImageSelection, recent_versions: int = 10):
        """Initialize exporter with an image selection.

        Args:
            selection: The ImageSelection to export
            recent_versions: Maximum number of versions listed in the version table
        """
        self.selection = selection
        self.recent_versions = recent_versions

    def export(self, output_dir: str, prefix: str, when: Optional[datetime] = None) -> str:
        """Write the report into output_dir.

        Returns:
            Path to the exported file
        """
        when = when or datetime.now()
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / report_filename(self.selection, prefix, when)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.render(when))
        return str(output_path)

    def render(self, when: Optional[datetime] = None) -> str:
        """Render the full Markdown document."""
        when = when or datetime.now()
        sections = [
            self._render_header(when),
            self._render_reference_table(),
            self._render_quick_uri(),
            self._render_versions_table(),
            self._render_metadata(),
            self._render_deployment_examples(),
        ]
        return "\n".join(sections)

    def _render_header(self, when: datetime) -> str:
        s = self.selection
        lines = [
            f"# Azure VM Image: {s.publisher} / {s.offer} / {s.sku}",
            "",
            f"_Generated {when.strftime('%Y-%m-%d %H:%M:%S')} for region `{s.region}`._",
            "",
        ]
        if s.detail is None:
            lines += [
                "> **Note:** image details could not be retrieved for version "
                f"`{s.version}`; unavailable fields are shown as {NOT_AVAILABLE}.",
                "",
            ]
        return "\n".join(lines)

    def _render_reference_table(self) -> str:
        s = self.selection
        d = s.detail
        rows = [
            ("Publisher", s.publisher),
            ("Offer", s.offer),
            ("SKU", s.sku),
            ("Version", s.version),
            ("Region", s.region),
            ("URN", s.urn),
            ("Architecture", d.architecture if d else None),
            ("Hyper-V Generation", d.hyper_v_generation if d else None),
            ("OS Type", d.os_type if d else None),
            ("OS Disk Size (GB)", d.os_disk_size_gb if d else None),
            ("Data Disks", d.data_disk_count if d else None),
            ("Image State", d.image_state if d else None),
            ("Automatic OS Upgrade", d.automatic_os_upgrade_supported if d else None),
            ("Marketplace Plan", self._plan_text()),
        ]
        lines = ["## Image Reference", "", "| Property | Value |", "|---|---|"]
        lines += [f"| {name} | {_value(value)} |" for name, value in rows]

        if d and d.features:
            lines += ["", "### Features", "", "| Feature | Value |", "|---|---|"]
            lines += [f"| {name} | {_value(value)} |" for name, value in sorted(d.features.items())]
        lines.append("")
        return "\n".join(lines)

    def _plan_text(self) -> Optional[str]:
        d = self.selection.detail
        if d is None or not d.has_plan:
            return None
        return (
            f"{d.plan_name} (product: {d.plan_product or NOT_AVAILABLE}, "
            f"publisher: {d.plan_publisher or NOT_AVAILABLE})"
        )

    def _render_quick_uri(self) -> str:
        return "\n".join([
            "## Quick URI",
            "",
            "```",
            self.selection.quick_uri,
            "```",
            "",
        ])

    def _recent_versions(self) -> List[str]:
        return list(reversed(self.selection.versions))[:self.recent_versions]

    def _render_versions_table(self) -> str:
        recent = self._recent_versions()
        lines = [f"## Recent Versions (latest {self.recent_versions})", ""]
        if not recent:
            lines += ["No versions were listed for this image.", ""]
            return "\n".join(lines)
        lines += ["| # | Version | URN |", "|---|---|---|"]
        s = self.selection
        for i, version in enumerate(recent, start=1):
            marker = " (selected)" if version == s.version else ""
            lines.append(f"| {i} | {version}{marker} | {s.publisher}:{s.offer}:{s.sku}:{version} |")
        lines.append("")
        return "\n".join(lines)

    def _render_metadata(self) -> str:
        d = self.selection.detail
        payload = d.raw if d else {}
        return "\n".join([
            "## Image Metadata",
            "",
            "```json",
            json.dumps(payload, indent=2, sort_keys=True, default=str),
            "```",
            "",
        ])

    def _render_deployment_examples(self) -> str:
        s = self.selection
        plan_note = ""
        if s.detail and s.detail.has_plan:
            plan_note = (
                "\n> This is a Marketplace image with a purchase plan. Accept the terms first:\n"
                f"> `az vm image terms accept --urn {s.urn}`\n"
            )
        return f"""## Deployment Examples
{plan_note}
### Azure CLI

```bash
az vm create \\
  --resource-group my-resource-group \\
  --name my-vm \\
  --location {s.region} \\
  --image {s.quick_uri} \\
  --size Standard_D2s_v5 \\
  --admin-username azureuser \\
  --generate-ssh-keys
```

### Azure PowerShell

```powershell
$vmConfig = New-AzVMConfig -VMName "my-vm" -VMSize "Standard_D2s_v5"
$vmConfig = Set-AzVMSourceImage -VM $vmConfig `
  -PublisherName "{s.publisher}" `
  -Offer "{s.offer}" `
  -Skus "{s.sku}" `
  -Version "latest"
New-AzVM -ResourceGroupName "my-resource-group" -Location "{s.region}" -VM $vmConfig
```

### Bicep

```bicep
resource vm 'Microsoft.Compute/virtualMachines@2023-09-01' = {{
  name: 'my-vm'
  location: '{s.region}'
  properties: {{
    storageProfile: {{
      imageReference: {{
        publisher: '{s.publisher}'
        offer: '{s.offer}'
        sku: '{s.sku}'
        version: 'latest'
      }}
    }}
  }}
}}
```

### Terraform

```hcl
resource "azurerm_linux_virtual_machine" "example" {{
  name     = "my-vm"
  location = "{s.region}"

  source_image_reference {{
    publisher = "{s.publisher}"
    offer     = "{s.offer}"
    sku       = "{s.sku}"
    version   = "latest"
  }}
}}
```
"""


def export_report(
    selection: ImageSelection,
    output_dir: str,
    prefix: str,
    recent_versions: int = 10,
    when: Optional[datetime] = None,
) -> str:
    """Convenience function to export a report.

    Args:
        selection: The ImageSelection to export
        output_dir: Directory the report is written into
        prefix: File name prefix
        recent_versions: Maximum number of versions in the version table
        when: Timestamp used for the file name and header (defaults to now)

    Returns:
        Path to the exported file
    """
    exporter = ReportExporter(selection, recent_versions=recent_versions)
    return exporter.export(output_dir, prefix, when)
