import logging

import streamlit as st

from tnb_bill.config import settings
from tnb_bill.ui.layout import render_calculator


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(
        page_title="TNB Bill Estimator",
        layout="centered",
    )
    render_calculator()


if __name__ == "__main__":
    main()
