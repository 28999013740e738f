"""Main application window for placing template fields over a PDF."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup, QKeySequence, QPixmap
from PySide6.QtWidgets import (
    QDockWidget,
    QFileDialog,
    QInputDialog,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QSplitter,
    QToolBar,
)

from agreement_vault.config import EditorSettings, get_settings
from agreement_vault.errors import PersistenceError, TemplateValidationError
from agreement_vault.model.field import FieldType, TemplateField
from agreement_vault.merge.registry import MergeFieldRegistry
from agreement_vault.model.template import TemplateType, new_template
from agreement_vault.pdf.importer import FieldImportError, detect_pdf_fields
from agreement_vault.pdf.loader import DocumentLoader, LoadState
from agreement_vault.pdf.renderer import PdfRenderError, render_page_image
from agreement_vault.state.field_store import FieldStore
from agreement_vault.state.template_session import TemplateSession
from agreement_vault.storage.templates import JsonTemplateStore, TemplateLibrary
from agreement_vault.ui.panels import FieldPropertiesPanel, TermsDock
from agreement_vault.viewer.canvas import TemplateCanvas
from agreement_vault.viewer.page_model import PageCanvasModel


class MainWindow(QMainWindow):
    def __init__(self, settings: EditorSettings | None = None) -> None:
        super().__init__()
        self.setWindowTitle("Agreement Template Builder")
        self.resize(1300, 850)

        self._settings = settings or get_settings()
        self._loader = DocumentLoader(on_state_change=self._on_load_state)
        self._library = TemplateLibrary(JsonTemplateStore(self._settings.storage_dir))
        self._store = FieldStore(on_fields_change=self._on_fields_changed, settings=self._settings)
        self._page_model = PageCanvasModel(settings=self._settings)
        self._registry = MergeFieldRegistry()
        self._session: TemplateSession | None = None
        self._current_page = 1

        self.page_list = QListWidget()
        self.page_list.currentRowChanged.connect(self._on_page_selected)

        self.canvas = TemplateCanvas(self._store, self._page_model)
        self.canvas.field_created.connect(self._on_canvas_field_created)

        self.properties = FieldPropertiesPanel()
        self.properties.field_edited.connect(self._on_field_edited)
        self.canvas.field_selection_changed.connect(self.properties.show_field)
        properties_dock = QDockWidget("Field Properties", self)
        properties_dock.setObjectName("FieldPropertiesDock")
        properties_dock.setWidget(self.properties)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, properties_dock)

        self.terms_dock = TermsDock(self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.terms_dock)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(False)
        self.scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.scroll_area.setWidget(self.canvas)

        splitter = QSplitter()
        splitter.addWidget(self.page_list)
        splitter.addWidget(self.scroll_area)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)
        self.setCentralWidget(splitter)

        self._build_toolbar()
        self.statusBar().showMessage("Ready")

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        for label, handler in (
            ("Open PDF", self.open_pdf),
            ("Import Fields", self.import_fields),
            ("Save Template", self.save_template),
            ("Delete Field", self.delete_selected_field),
        ):
            action = QAction(label, self)
            action.triggered.connect(handler)
            toolbar.addAction(action)

        copy_action = QAction("Copy Field", self)
        copy_action.setShortcut("Ctrl+D")
        copy_action.triggered.connect(self.copy_selected_field)
        toolbar.addAction(copy_action)

        toolbar.addSeparator()

        for label, handler in (
            ("Previous", self.show_previous_page),
            ("Next", self.show_next_page),
            ("Zoom -", self.zoom_out),
            ("Zoom +", self.zoom_in),
        ):
            action = QAction(label, self)
            action.triggered.connect(handler)
            toolbar.addAction(action)

        self._preview_action = QAction("Preview", self)
        self._preview_action.setCheckable(True)
        self._preview_action.toggled.connect(self.set_preview_mode)
        toolbar.addAction(self._preview_action)

        toolbar.addSeparator()

        mode_group = QActionGroup(self)
        mode_group.setExclusive(True)

        self._pointer_action = QAction("Pointer", self)
        self._pointer_action.setCheckable(True)
        self._pointer_action.setChecked(True)
        self._pointer_action.triggered.connect(lambda: self._set_mode(None))
        mode_group.addAction(self._pointer_action)
        toolbar.addAction(self._pointer_action)

        for field_type in FieldType:
            action = QAction(f"Add {field_type.value.capitalize()}", self)
            action.setCheckable(True)
            action.triggered.connect(lambda checked=False, kind=field_type: self._set_mode(kind))
            mode_group.addAction(action)
            toolbar.addAction(action)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.canvas.controller.dispose()
        self._loader.close()
        super().closeEvent(event)

    def open_pdf(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open PDF",
            str(Path.home()),
            "PDF Files (*.pdf)",
        )
        if not file_path:
            return

        self.canvas.clear_page()
        document = self._loader.load(file_path)
        while document is None:
            choice = QMessageBox.critical(
                self,
                "Open Failed",
                self._loader.error or "The document could not be loaded.",
                QMessageBox.StandardButton.Retry | QMessageBox.StandardButton.Cancel,
            )
            if choice != QMessageBox.StandardButton.Retry:
                return
            document = self._loader.retry()

        self._page_model.set_pages(document.page_sizes())
        self._store.bind_document(document.document_id, document.page_count)
        template = replace(
            new_template(document.path.stem, TemplateType.PURCHASE, created_by="current_user"),
            document_id=document.document_id,
        )
        self._session = TemplateSession(template, self._store, self._registry)
        self.properties.set_session(self._session)
        self.terms_dock.set_session(self._session)
        self._current_page = 1
        self._populate_page_list()
        self._render_current_page()
        self.statusBar().showMessage(f"Loaded: {file_path} (editing temp working copy)")

    def import_fields(self) -> None:
        document = self._loader.document
        if document is None:
            QMessageBox.information(self, "No Document", "Open a PDF first.")
            return
        try:
            placed = self._store.add_detected(detect_pdf_fields(document.working_path, self._registry))
        except FieldImportError as exc:
            QMessageBox.warning(self, "Field Import Warning", str(exc))
            return
        self.canvas.update()
        self.terms_dock.refresh_tokens()
        self.statusBar().showMessage(f"Imported {len(placed)} field(s)")

    def save_template(self) -> None:
        if self._session is None:
            QMessageBox.information(self, "No Document", "Open a PDF first.")
            return

        name, accepted = QInputDialog.getText(
            self, "Save Template", "Template name:", text=self._session.snapshot().metadata.name
        )
        if not accepted:
            return

        try:
            saved = self._library.save(self._session.snapshot(name))
        except (TemplateValidationError, PersistenceError) as exc:
            QMessageBox.critical(self, "Save Failed", str(exc))
            return
        self._session.mark_saved(saved)
        self.statusBar().showMessage(f"Saved template: {saved.metadata.name}")

    def show_previous_page(self) -> None:
        if self._loader.document is None or self._current_page <= 1:
            return
        self.page_list.setCurrentRow(self._current_page - 2)

    def show_next_page(self) -> None:
        document = self._loader.document
        if document is None or self._current_page >= document.page_count:
            return
        self.page_list.setCurrentRow(self._current_page)

    def zoom_in(self) -> None:
        self._page_model.zoom_in()
        self._render_current_page()

    def zoom_out(self) -> None:
        self._page_model.zoom_out()
        self._render_current_page()

    def set_preview_mode(self, enabled: bool) -> None:
        self.canvas.set_preview_mode(enabled)
        self.statusBar().showMessage("Preview mode" if enabled else "Edit mode")

    def delete_selected_field(self) -> None:
        selected = self._store.selected
        if selected is None or self.canvas.controller.preview_mode:
            self.statusBar().showMessage("No selected field to delete.")
            return
        self.canvas.controller.end()
        self._store.remove_field(selected.id)
        self.properties.show_field(None)
        self.terms_dock.refresh_tokens()
        self.canvas.update()

    def copy_selected_field(self) -> None:
        selected = self._store.selected
        if selected is None or self.canvas.controller.preview_mode:
            self.statusBar().showMessage("No selected field to copy.")
            return
        self.properties.show_field(self._store.duplicate_field(selected.id))
        self.terms_dock.refresh_tokens()
        self.canvas.update()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Delete:
            self.delete_selected_field()
            event.accept()
            return
        if event.matches(QKeySequence.StandardKey.Copy):
            self.copy_selected_field()
            event.accept()
            return
        super().keyPressEvent(event)

    def _set_mode(self, mode: FieldType | None) -> None:
        self.canvas.set_placement_type(mode)
        label = "Pointer mode" if mode is None else f"Placement mode: {mode.value}"
        self.statusBar().showMessage(label)

    def _populate_page_list(self) -> None:
        self.page_list.clear()
        document = self._loader.document
        if document is None:
            return

        for page_number in range(1, document.page_count + 1):
            self.page_list.addItem(QListWidgetItem(f"Page {page_number}"))

        self.page_list.setCurrentRow(0)

    def _on_page_selected(self, row: int) -> None:
        if self._loader.document is None or row < 0:
            return

        self._current_page = row + 1
        self._render_current_page()

    def _on_load_state(self, state: LoadState) -> None:
        self.statusBar().showMessage(f"Document: {state.value}")

    def _on_fields_changed(self, fields: tuple[TemplateField, ...]) -> None:
        on_page = sum(1 for field in fields if field.page == self._current_page)
        self.statusBar().showMessage(f"Page {self._current_page}: {on_page} field(s)")

    def _on_field_edited(self) -> None:
        self.terms_dock.refresh_tokens()
        self.canvas.update()

    def _on_canvas_field_created(self) -> None:
        self._pointer_action.setChecked(True)
        self._set_mode(None)

    def _render_current_page(self) -> None:
        document = self._loader.document
        if document is None:
            self.canvas.clear_page()
            return

        try:
            image = render_page_image(document.handle, self._current_page, scale=self._page_model.scale)
        except PdfRenderError as exc:
            QMessageBox.critical(self, "Render Failed", str(exc))
            return

        self.canvas.set_page(QPixmap.fromImage(image), self._current_page)
        self.statusBar().showMessage(
            f"Page {self._current_page}/{document.page_count} at {round(self._page_model.scale * 100)}%"
        )
