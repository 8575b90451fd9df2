"""
Flow Dashboard Read Layer

PACKAGE STRUCTURE:
==================
- dtos/: Immutable DTOs (FlowDTO, TimelineEventDTO, CompareReportDTO)
- mapper.py: Wire JSON -> DTO conversion
- state/: Pagination cursor, event window, stream sessions
- presentation/: View models for the renderer
- config.py: Configuration and logging setup
- service.py: DashboardService, drives both streams

The service is imported from `dashboard.service` directly.
"""
