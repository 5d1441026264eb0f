from __future__ import annotations

import json
import sys
from typing import Dict, List, Optional, Tuple

from PySide6 import QtWidgets

from .array_loss import REPAIR_CADENCES
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ArrayHealthError
from .models import Operation
from .platform import DeviceQuery, SystemDeviceQuery
from .report import NOT_TRACKED, DeviceRow, SmartSummary, format_probability, summarize, summary_to_dict
from .topology import resolve

DEVICE_COLUMNS = [
    "Disk",
    "Device",
    "Serial",
    "Size (TB)",
    "Temp (C)",
    "Power-On Days",
    "Errors",
    "AFR",
    "Fail Prob.",
]


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH, query: Optional[DeviceQuery] = None) -> None:
        super().__init__()
        self.setWindowTitle("Array Health")
        self.resize(960, 600)

        self.config_path = config_path
        self.query = query or SystemDeviceQuery()
        self._last_summary: Optional[SmartSummary] = None

        self.status_label = QtWidgets.QLabel("")
        self.scan_button = QtWidgets.QPushButton("Scan")
        self.scan_button.clicked.connect(self.scan)
        self.export_json_button = QtWidgets.QPushButton("Export JSON")
        self.export_json_button.clicked.connect(self.export_json)

        header = QtWidgets.QHBoxLayout()
        header.addWidget(self.scan_button)
        header.addWidget(self.export_json_button)
        header.addStretch(1)
        header.addWidget(self.status_label)

        self.tree = QtWidgets.QTreeWidget()
        self.tree.setColumnCount(len(DEVICE_COLUMNS))
        self.tree.setHeaderLabels(DEVICE_COLUMNS)
        self.tree.setAlternatingRowColors(True)

        self.loss_table = QtWidgets.QTableWidget(0, len(REPAIR_CADENCES) + 1)
        self.loss_table.setHorizontalHeaderLabels(["Parity"] + [label for label, _ in REPAIR_CADENCES])
        self.loss_table.verticalHeader().setVisible(False)

        self.summary_label = QtWidgets.QLabel("")

        root = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(root)
        layout.addLayout(header)
        layout.addWidget(self.tree, 3)
        layout.addWidget(self.summary_label)
        layout.addWidget(QtWidgets.QLabel("Probability of data loss in the next year by scrub/repair time:"))
        layout.addWidget(self.loss_table, 2)
        self.setCentralWidget(root)

        self._set_status("Ready")

    def _set_status(self, text: str) -> None:
        self.status_label.setText(text)

    def scan(self) -> None:
        self.tree.clear()
        self.loss_table.setRowCount(0)
        self.summary_label.setText("")
        self._set_status("Scanning...")

        try:
            config = load_config(self.config_path)
        except ArrayHealthError as exc:
            self._set_status(str(exc))
            return

        result = resolve(config, self.query, Operation.SMART)
        if result.diagnostic:
            self._set_status(result.diagnostic)
            return

        summary = summarize(result.topology, result.member_count)
        for device, rows in group_by_device(summary.rows):
            self.tree.addTopLevelItem(device_item(device, rows))
        self.tree.expandAll()

        self.summary_label.setText(
            f"Probability that at least one disk fails in the next year: "
            f"{summary.failure_probability * 100:.0f}%"
        )
        self.loss_table.setRowCount(len(summary.loss))
        for i, loss in enumerate(summary.loss):
            self.loss_table.setItem(i, 0, QtWidgets.QTableWidgetItem(str(loss.redundancy)))
            for j, probability in enumerate(loss.probabilities, start=1):
                self.loss_table.setItem(i, j, QtWidgets.QTableWidgetItem(format_probability(probability * 100)))

        self._last_summary = summary
        self._set_status("Done")

    def export_json(self) -> None:
        if not self._last_summary:
            self._set_status("Nothing to export. Run Scan first.")
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export JSON", "array_health_report.json", "JSON Files (*.json)"
        )
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(summary_to_dict(self._last_summary), f, ensure_ascii=False, indent=2)
            self._set_status(f"Exported: {path}")
        except OSError as exc:
            self._set_status(f"Export failed: {exc}")


def device_columns(row: DeviceRow) -> List[str]:
    return [
        row.name or NOT_TRACKED,
        row.file,
        row.serial,
        f"{row.size_tb:.1f}" if row.size_tb is not None else "",
        _fmt_int(row.temperature),
        _fmt_int(row.power_on_days),
        _fmt_int(row.error_count),
        f"{row.afr:.3f}",
        f"{row.afp * 100:.0f}%",
    ]


def group_by_device(rows: List[DeviceRow]) -> List[Tuple[str, List[DeviceRow]]]:
    """Group report rows by the physical disk backing them, in first seen order."""
    groups: Dict[str, List[DeviceRow]] = {}
    for row in rows:
        groups.setdefault(row.device or row.file, []).append(row)
    return list(groups.items())


def device_item(device: str, rows: List[DeviceRow]) -> QtWidgets.QTreeWidgetItem:
    # members of one disk share its telemetry, the disk line shows it once
    columns = device_columns(rows[0])
    columns[1] = device
    if rows[0].name is not None:
        columns[0] = ""
    item = QtWidgets.QTreeWidgetItem(columns)
    for row in rows:
        if row.name is not None:
            item.addChild(QtWidgets.QTreeWidgetItem([row.name, row.file]))
    return item


def _fmt_int(value: Optional[int]) -> str:
    if value is None:
        return ""
    return f"{value}"


def main() -> None:
    app = QtWidgets.QApplication(sys.argv)
    config_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH
    win = MainWindow(config_path)
    win.show()
    sys.exit(app.exec())
