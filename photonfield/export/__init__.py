from photonfield.export.pdf_report import PDFPaths, build_field_report, build_pdf_report

__all__ = ["PDFPaths", "build_field_report", "build_pdf_report"]
