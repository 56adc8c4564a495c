from .pdf_writer import DocumentWriter, PdfDocumentWriter
from .renderer import ExportReport, export_pdf, render_sheet
from .worker import ExportController, ExportWorker, WorkerSignals
