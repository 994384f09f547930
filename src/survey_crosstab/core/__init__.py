"""
Core data and tabulation layer.

This package contains:
- categories: built-in demographic enumerations with localized labels
- fields: field addressing (static / custom / computed) and header resolution
- metadata_loader: schema document parsing into custom-field definitions
- data_loader: response CSV parsing into typed records
- record_filter: validation, ignore/include filtering and text cleaning
- distribution: self and conditional distributions
- crosstab, computed: report table assembly
- report, export: end-to-end dataset building and workbook output
"""
