"""Side panels: selected-field properties, and agreement terms with preview."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDockWidget,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from agreement_vault.errors import TemplateValidationError
from agreement_vault.model.field import FieldType, TemplateField
from agreement_vault.state.template_session import TemplateSession


def parse_options(text: str) -> tuple[str, ...]:
    """Comma separated dropdown choices, blanks dropped."""
    return tuple(part.strip() for part in text.split(",") if part.strip())


class FieldPropertiesPanel(QWidget):
    """Edits the selected field and binds it to a merge token."""

    field_edited = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._session: TemplateSession | None = None
        self._field_id: str | None = None

        self.label_edit = QLineEdit()
        self.label_edit.editingFinished.connect(lambda: self._apply(label=self.label_edit.text().strip()))

        self.type_combo = QComboBox()
        for field_type in FieldType:
            self.type_combo.addItem(field_type.value.capitalize(), field_type.value)
        self.type_combo.currentIndexChanged.connect(
            lambda _index: self._apply(type=self.type_combo.currentData())
        )

        self.required_check = QCheckBox("Required")
        self.required_check.toggled.connect(lambda checked: self._apply(required=checked))

        self.options_edit = QLineEdit()
        self.options_edit.setPlaceholderText("Option 1, Option 2")
        self.options_edit.editingFinished.connect(
            lambda: self._apply(options=parse_options(self.options_edit.text()))
        )

        self.default_edit = QLineEdit()
        self.default_edit.editingFinished.connect(
            lambda: self._apply(default_value=self.default_edit.text() or None)
        )

        self.token_combo = QComboBox()
        self.token_combo.currentIndexChanged.connect(self._on_token_chosen)

        self.custom_button = QPushButton("Add Custom Token...")
        self.custom_button.clicked.connect(self.add_custom_token)

        self.summary_label = QLabel()

        form = QFormLayout(self)
        form.addRow("Label", self.label_edit)
        form.addRow("Type", self.type_combo)
        form.addRow("", self.required_check)
        form.addRow("Options", self.options_edit)
        form.addRow("Default", self.default_edit)
        form.addRow("Merge field", self.token_combo)
        form.addRow("", self.custom_button)
        form.addRow(self.summary_label)

        self.show_field(None)

    def set_session(self, session: TemplateSession | None) -> None:
        self._session = session
        self._reload_tokens()
        self.show_field(None)

    def show_field(self, field: TemplateField | None) -> None:
        self._field_id = field.id if field is not None else None
        editors = (self.label_edit, self.type_combo, self.required_check, self.options_edit,
                   self.default_edit, self.token_combo)
        for editor in editors:
            editor.blockSignals(True)
        try:
            if field is None:
                self.label_edit.clear()
                self.options_edit.clear()
                self.default_edit.clear()
                self.required_check.setChecked(False)
                self.token_combo.setCurrentIndex(0)
            else:
                self.label_edit.setText(field.label)
                self.type_combo.setCurrentIndex(self.type_combo.findData(field.type.value))
                self.required_check.setChecked(field.required)
                self.options_edit.setText(", ".join(field.options))
                self.options_edit.setEnabled(field.type is FieldType.DROPDOWN)
                self.default_edit.setText(field.default_value or "")
                self.token_combo.setCurrentIndex(self._token_index(field.merge_field))
        finally:
            for editor in editors:
                editor.blockSignals(False)

        enabled = field is not None and self._session is not None
        for editor in editors:
            editor.setEnabled(enabled)
        if field is not None:
            self.options_edit.setEnabled(enabled and field.type is FieldType.DROPDOWN)
        self.custom_button.setEnabled(self._session is not None)
        self._update_summary()

    def add_custom_token(self) -> None:
        if self._session is None:
            return
        key, accepted = QInputDialog.getText(self, "Custom Token", "Token key (letters, digits, _):")
        if not accepted:
            return
        label, accepted = QInputDialog.getText(self, "Custom Token", "Display label:")
        if not accepted:
            return
        try:
            entry = self._session.add_custom_token(key, label)
        except TemplateValidationError as exc:
            QMessageBox.warning(self, "Custom Token", str(exc))
            return
        self._reload_tokens()
        if self._field_id is not None:
            self.token_combo.setCurrentIndex(self._token_index(entry.key))

    def _on_token_chosen(self, _index: int) -> None:
        if self._session is None or self._field_id is None:
            return
        try:
            self._session.bind_field(self._field_id, self.token_combo.currentData())
        except TemplateValidationError as exc:
            QMessageBox.warning(self, "Merge Field", str(exc))
            return
        self._update_summary()
        self.field_edited.emit()

    def _apply(self, **changes: object) -> None:
        if self._session is None or self._field_id is None:
            return
        try:
            updated = self._session.store.update_field(self._field_id, **changes)
        except (TemplateValidationError, ValueError) as exc:
            QMessageBox.warning(self, "Field Properties", str(exc))
            return
        if "type" in changes:
            self.show_field(updated)
        self.field_edited.emit()

    def _reload_tokens(self) -> None:
        current = self.token_combo.currentData()
        self.token_combo.blockSignals(True)
        try:
            self.token_combo.clear()
            self.token_combo.addItem("(none)", None)
            if self._session is not None:
                for category, entries in self._session.registry.grouped().items():
                    if not entries:
                        continue
                    self.token_combo.insertSeparator(self.token_combo.count())
                    for entry in entries:
                        self.token_combo.addItem(f"{category}: {entry.label}", entry.key)
            self.token_combo.setCurrentIndex(self._token_index(current))
        finally:
            self.token_combo.blockSignals(False)

    def _token_index(self, key: str | None) -> int:
        if not key:
            return 0
        return max(self.token_combo.findData(key), 0)

    def _update_summary(self) -> None:
        if self._session is None:
            self.summary_label.clear()
            return
        summary = self._session.registry.mapping_summary(self._session.store.fields)
        self.summary_label.setText(f"{summary.mapped} of {summary.total} field(s) mapped")


class TermsDock(QDockWidget):
    """Agreement terms with ``{{token}}`` placeholders, sample values and preview."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__("Agreement Terms", parent)
        self.setObjectName("TermsDock")
        self._session: TemplateSession | None = None

        self.terms_edit = QPlainTextEdit()
        self.terms_edit.setPlaceholderText("Buyer {{customer_name}} agrees to ...")
        self.terms_edit.textChanged.connect(self._on_terms_changed)

        self.values_table = QTableWidget(0, 2)
        self.values_table.setHorizontalHeaderLabels(["Merge field", "Sample value"])
        self.values_table.horizontalHeader().setStretchLastSection(True)
        self.values_table.itemChanged.connect(self._on_value_changed)

        self.output = QTextBrowser()

        preview_button = QPushButton("Preview")
        preview_button.clicked.connect(self.show_preview)
        finalize_button = QPushButton("Finalize")
        finalize_button.clicked.connect(self.finalize)

        buttons = QHBoxLayout()
        buttons.addWidget(preview_button)
        buttons.addWidget(finalize_button)
        buttons.addStretch(1)

        body = QWidget()
        layout = QVBoxLayout(body)
        layout.addWidget(self.terms_edit, 2)
        layout.addWidget(self.values_table, 1)
        layout.addLayout(buttons)
        layout.addWidget(self.output, 2)
        self.setWidget(body)
        self.setEnabled(False)

    def set_session(self, session: TemplateSession | None) -> None:
        self._session = session
        self.terms_edit.blockSignals(True)
        self.terms_edit.setPlainText(session.terms if session is not None else "")
        self.terms_edit.blockSignals(False)
        self.output.clear()
        self.setEnabled(session is not None)
        self.refresh_tokens()

    def refresh_tokens(self) -> None:
        """Rebuild the sample-value rows from the template's current merge fields."""
        self.values_table.blockSignals(True)
        try:
            self.values_table.setRowCount(0)
            if self._session is None:
                return
            values = self._session.values
            for row, token in enumerate(self._session.merge_fields()):
                self.values_table.insertRow(row)
                name = QTableWidgetItem(self._session.registry.label_for(token))
                name.setData(Qt.ItemDataRole.UserRole, token)
                name.setFlags(name.flags() & ~Qt.ItemFlag.ItemIsEditable)
                self.values_table.setItem(row, 0, name)
                self.values_table.setItem(row, 1, QTableWidgetItem(values.get(token, "")))
        finally:
            self.values_table.blockSignals(False)

    def show_preview(self) -> None:
        if self._session is None:
            return
        self.output.setPlainText(self._session.preview())

    def finalize(self) -> None:
        if self._session is None:
            return
        try:
            rendered = self._session.finalize()
        except TemplateValidationError as exc:
            QMessageBox.warning(self, "Cannot Finalize", str(exc))
            return
        self.output.setPlainText(rendered)

    def _on_terms_changed(self) -> None:
        if self._session is None:
            return
        self._session.set_terms(self.terms_edit.toPlainText())
        self.refresh_tokens()

    def _on_value_changed(self, item: QTableWidgetItem) -> None:
        if self._session is None or item.column() != 1:
            return
        token = self.values_table.item(item.row(), 0).data(Qt.ItemDataRole.UserRole)
        self._session.set_value(token, item.text())
