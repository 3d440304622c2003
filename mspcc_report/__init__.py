"""
mspcc_report — MSPCC weekly business report package.

Modules:
    metrics         — Product / Metrics records, catalogue CSV loader, KPI roll-up
    narrative       — ReportContent structure, JSON/YAML loader, template fallback text
    theme           — Colour + branding Theme passed explicitly to every renderer
    charts          — ChartSpec + matplotlib ChartRenderer (PNG rasterisation)
    pdf_builder     — ReportLab report assembler: cursor layout, tables, charts, page footers
    goal_tracker    — Weekly profit goal progress card
    dashboard       — Interactive Plotly HTML dashboard
    data_simulator  — Seeded synthetic product catalogue
"""
