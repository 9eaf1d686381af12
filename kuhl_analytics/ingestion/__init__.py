"""
Ingestion Module

Season normalization, workbook reading, file detection, record parsing and
the transactional import service.
"""
