# ui/styles.py

PALETTE = {
    "ink": "#1C1410",         # window background, warm black
    "panel": "#2A201A",
    "panel_edge": "#4A3A2C",
    "gold": "#C9A227",
    "gold_soft": "rgba(201, 162, 39, 0.35)",
    "ivory": "#FBF6EC",
    "muted": "#B8AC98",
    "alert": "#E57373",
}


def get_stylesheet(palette=PALETTE):
    p = palette
    return f"""
    QWidget {{
        background-color: {p['ink']};
        color: {p['ivory']};
        font-family: 'Segoe UI', 'Inter', sans-serif;
        font-size: 13px;
    }}

    QLabel#CameraView {{
        background-color: black;
        border: 1px solid {p['panel_edge']};
        border-radius: 10px;
        color: {p['muted']};
    }}
    QLabel#StatusLabel {{ color: {p['muted']}; padding: 4px 2px; }}
    QLabel#StatusLabel[error="true"] {{ color: {p['alert']}; font-weight: 600; }}

    QPushButton {{
        background-color: {p['panel']};
        border: 1px solid {p['gold_soft']};
        border-radius: 8px;
        padding: 9px 16px;
    }}
    QPushButton:hover {{ border-color: {p['gold']}; }}
    QPushButton:pressed {{ background-color: {p['panel_edge']}; }}
    QPushButton#PrimaryButton {{
        background-color: {p['gold']};
        color: {p['ink']};
        border: none;
        font-weight: 700;
    }}
    QPushButton#ResetButton {{
        background: transparent;
        border: none;
        color: {p['gold']};
        text-decoration: underline;
    }}

    QGroupBox {{
        background-color: {p['panel']};
        border: 1px solid {p['panel_edge']};
        border-radius: 10px;
        margin-top: 16px;
        padding: 8px;
    }}
    QGroupBox::title {{ subcontrol-origin: margin; left: 10px; color: {p['gold']}; }}
    QGroupBox:disabled {{ color: {p['muted']}; }}

    QSlider::groove:horizontal {{ height: 3px; background: {p['panel_edge']}; }}
    QSlider::sub-page:horizontal {{ background: {p['gold']}; }}
    QSlider::handle:horizontal {{
        background: {p['ivory']};
        border: 2px solid {p['gold']};
        width: 12px;
        margin: -6px 0;
        border-radius: 8px;
    }}

    QCheckBox {{ spacing: 8px; }}
    QCheckBox::indicator:checked {{ background-color: {p['gold']}; border-radius: 3px; }}
    """
