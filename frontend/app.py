# frontend/app.py
from __future__ import annotations

import os

import httpx
import streamlit as st

API_URL = os.getenv("ETH_TERMINAL_API_URL", "http://127.0.0.1:8000")

SYMBOLS = ["ETH/USD"]
SIDE_LABELS = {"long": "Buy / Long", "short": "Sell / Short"}
PRICE_STEP = 5.0


def fmt2(x) -> str:
    """Format any number to 2 decimals; otherwise '0.00'."""
    try:
        return f"{float(x):,.2f}"
    except (TypeError, ValueError):
        return "0.00"


def fmt_signed_usd(x) -> str:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return "$0.00"
    return f"{'+' if v >= 0 else '-'}${abs(v):,.2f}"


def parse_price(s: str | float | None) -> float | None:
    """Accept '2310,50' or '2310.50' or a float; return float or None."""
    if s is None:
        return None
    if isinstance(s, (int, float)):
        return float(s)
    s = s.strip().replace(",", ".")
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def call_api(
    method: str,
    path: str,
    *,
    json: dict | None = None,
    params: dict | None = None,
    timeout: float = 20.0,
):
    """Small HTTP helper with nicer Streamlit errors."""
    url = f"{API_URL}{path}"
    try:
        r = httpx.request(method, url, json=json, params=params, timeout=timeout)
        r.raise_for_status()
        ctype = r.headers.get("content-type", "")
        return r.json() if "application/json" in ctype else r.text
    except httpx.TimeoutException:
        st.warning("⏳ Backend is taking longer than usual. Try again in a few seconds.")
        st.stop()
    except httpx.HTTPError as e:
        st.error(f"API error while calling `{path}`: {e}")
        st.stop()


def load_positions():
    return call_api("GET", "/positions")


def load_summary():
    return call_api("GET", "/positions/summary")


def load_market():
    return call_api("GET", "/market")


def post_position(data: dict):
    return call_api("POST", "/positions", json=data)


def update_position(position_id: str, data: dict):
    return call_api("PUT", f"/positions/{position_id}", json=data)


def toggle_excluded(position_id: str):
    return call_api("POST", f"/positions/{position_id}/toggle-excluded")


def delete_position(position_id: str):
    return call_api("DELETE", f"/positions/{position_id}")


def clear_positions():
    return call_api("DELETE", "/positions")


def generate_positions(data: dict):
    return call_api("POST", "/positions/generate", json=data)


def update_market(data: dict):
    return call_api("PUT", "/market", json=data)


def increment_price(step: float = PRICE_STEP):
    return call_api("POST", "/market/price/increment", json={"step": step})


@st.dialog("Edit Position")
def edit_dialog(pos):
    """Modal dialog for editing a position."""
    with st.form("edit_dialog_form"):
        symbol = st.text_input("Asset Pair", value=pos["symbol"])
        side = st.radio(
            "Side",
            options=list(SIDE_LABELS),
            format_func=SIDE_LABELS.get,
            index=0 if pos["side"] == "long" else 1,
            horizontal=True,
        )
        entry = st.number_input(
            "Entry Price", step=0.01, format="%.2f", value=float(pos["entryPrice"])
        )
        lots = st.number_input(
            "Lot Size", min_value=0.0, step=0.1, format="%.2f", value=float(pos["lotSize"])
        )

        save_btn = st.form_submit_button("Save")
        cancel_btn = st.form_submit_button("Cancel")

    if save_btn:
        update_position(
            pos["id"],
            {"symbol": symbol, "side": side, "entryPrice": entry, "lotSize": lots},
        )
        st.success(f"Updated {symbol}")
        st.rerun()

    if cancel_btn:
        st.info("Edit cancelled")
        st.rerun()


@st.dialog("Clear all positions?")
def clear_dialog(count: int):
    st.write(f"This removes all {count} positions. It cannot be undone.")
    c_yes, c_no = st.columns(2)
    if c_yes.button("Yes"):
        res = clear_positions()
        st.success(f"Deleted {res.get('deleted', 0)} positions")
        st.rerun()
    if c_no.button("No"):
        st.rerun()


def _market_header(market: dict):
    """Reference price (typed or stepped) and the global pip value."""
    c_price, c_step, c_pip = st.columns([2.0, 0.6, 1.4])

    shown = fmt2(market["price"]).replace(",", "")
    price_txt = c_price.text_input("Live ETH Price", value=shown, key="price_txt")
    # the field is rounded for display; only a user edit may write the price back
    if price_txt != shown:
        new_price = parse_price(price_txt)
        if new_price is None:
            # keep the last good price rather than coercing to zero
            c_price.warning(f"Not a price: `{price_txt}`. Keeping {fmt2(market['price'])}.")
        elif new_price != float(market["price"]):
            update_market({"price": new_price})
            st.rerun()

    c_step.write("")
    if c_step.button(f"▲ +{PRICE_STEP:g}", help=f"Price up ${PRICE_STEP:g}"):
        increment_price(PRICE_STEP)
        st.session_state.pop("price_txt", None)
        st.rerun()

    pip = c_pip.number_input(
        "Pip Value", step=0.1, format="%.2f", value=float(market["pipValue"]), key="pip_value"
    )
    if pip != float(market["pipValue"]):
        update_market({"pipValue": pip})
        st.rerun()


def _summary_metrics(summary: dict):
    m1, m2, m3, m4 = st.columns(4)
    total_pnl = float(summary.get("totalPnl", 0.0))
    m1.metric(
        "Global Floating P/L",
        fmt_signed_usd(total_pnl),
        delta=f"{float(summary.get('pnlPercent', 0.0)):+.2f}%",
    )
    m2.metric("Avg Position Price", f"${fmt2(summary.get('averageEntryPrice', 0.0))}")
    m3.metric("Active Exposure", f"{float(summary.get('totalLots', 0.0)):.2f} Lots")
    m4.metric("Total Invested", f"${fmt2(summary.get('totalInvested', 0.0))}")


def _add_form(market: dict):
    with st.expander("➕ Add Position", expanded=False):
        with st.form("add_form"):
            symbol = st.selectbox("Asset Pair", SYMBOLS)
            side = st.radio(
                "Side", options=list(SIDE_LABELS), format_func=SIDE_LABELS.get, horizontal=True
            )
            entry_txt = st.text_input("Entry Price", placeholder="0.00")
            lots_txt = st.text_input("Lot Size", placeholder="1.0")
            st.caption(f"This position will use the global Pip Value of ${fmt2(market['pipValue'])}")
            submitted = st.form_submit_button("Add")

        if submitted:
            entry = parse_price(entry_txt)
            lots = parse_price(lots_txt)
            if entry is None or lots is None:
                st.error("Entry price and lot size must be numbers.")
                return
            post_position({"symbol": symbol, "side": side, "entryPrice": entry, "lotSize": lots})
            st.success(f"Added {symbol}")
            st.rerun()


def _generate_form(market: dict):
    with st.expander("🪜 Generate Grid", expanded=False):
        with st.form("generate_form"):
            c1, c2 = st.columns(2)
            symbol = c1.selectbox("Asset Pair", SYMBOLS, key="gen_symbol")
            side = c2.radio(
                "Side",
                options=list(SIDE_LABELS),
                format_func=SIDE_LABELS.get,
                horizontal=True,
                key="gen_side",
            )
            base = c1.number_input(
                "Base Price", step=0.01, format="%.2f", value=float(market["price"])
            )
            step = c2.number_input("Step Size", step=1.0, format="%.2f", value=10.0)
            count = c1.number_input("Count", min_value=1, step=1, value=5)
            lots = c2.number_input("Lot Size", min_value=0.0, step=0.1, format="%.2f", value=1.0)
            direction = st.radio(
                "Direction", options=["above", "below"], horizontal=True, key="gen_direction"
            )
            submitted = st.form_submit_button("Generate")

        if submitted:
            batch = generate_positions(
                {
                    "symbol": symbol,
                    "side": side,
                    "basePrice": base,
                    "stepSize": step,
                    "count": int(count),
                    "lotSize": lots,
                    "direction": direction,
                }
            )
            st.success(f"Generated {len(batch)} positions")
            st.rerun()


def _positions_table(positions: list[dict]):
    col_layout = [1.3, 1.0, 1.2, 0.9, 1.4, 1.4]
    headers = ["Symbol", "Side", "Entry", "Lots", "Floating P/L", ""]
    for col, header in zip(st.columns(col_layout), headers):
        col.markdown(f"**{header}**")

    if not positions:
        st.markdown("<div class='cell muted'>No active positions found.</div>", unsafe_allow_html=True)
        return

    for pos in positions:
        c_sym, c_side, c_entry, c_lots, c_pl, c_act = st.columns(col_layout)
        row_class = "cell excluded" if pos.get("excluded") else "cell"

        c_sym.markdown(f"<div class='{row_class}'>{pos['symbol']}</div>", unsafe_allow_html=True)
        side_class = "pos-green" if pos["side"] == "long" else "pos-red"
        c_side.markdown(
            f"<div class='{row_class} {side_class}'>{pos['side'].upper()}</div>",
            unsafe_allow_html=True,
        )
        c_entry.markdown(
            f"<div class='{row_class}'>${fmt2(pos['entryPrice'])}</div>", unsafe_allow_html=True
        )
        c_lots.markdown(f"<div class='{row_class}'>{fmt2(pos['lotSize'])}</div>", unsafe_allow_html=True)

        pnl = float(pos.get("floatingPnl", 0.0))
        pnl_class = "pos-green" if pnl >= 0 else "pos-red"
        c_pl.markdown(
            f"<div class='{row_class} {pnl_class}'>{fmt_signed_usd(pnl)}</div>",
            unsafe_allow_html=True,
        )

        with c_act.container():
            b_excl, b_edit, b_del = st.columns([1, 1, 1])
            eye = "🙈" if pos.get("excluded") else "👁️"
            if b_excl.button(eye, key=f"excl_{pos['id']}", help="Include / exclude from totals"):
                toggle_excluded(pos["id"])
                st.rerun()
            if b_edit.button("✏️", key=f"edit_{pos['id']}"):
                edit_dialog(pos)
            if b_del.button("🗑️", key=f"del_{pos['id']}"):
                delete_position(pos["id"])
                st.success(f"Deleted {pos['symbol']}")
                st.rerun()


def main():
    st.set_page_config(page_title="ETH Terminal")
    st.title("📊 ETH Terminal")
    st.caption("Portfolio Management Dashboard")

    st.markdown(
        """
        <style>
        .cell { white-space: nowrap; overflow: hidden; text-overflow: ellipsis; line-height: 1.2rem; }
        .excluded { opacity: 0.4; }
        .pos-green { color: #0a0; }
        .pos-red { color: #c00; }
        .muted { color: #666; }
        .block-container {
            padding-top: 0.5rem !important;
            padding-bottom: 0.5rem !important;
            max-width: 100% !important;
        }
        header { visibility: hidden; }
        </style>
        """,
        unsafe_allow_html=True,
    )

    market = load_market()
    _market_header(market)

    _summary_metrics(load_summary())

    _add_form(market)
    _generate_form(market)

    positions = load_positions()
    st.subheader("Active Positions")
    _positions_table(positions)

    if positions and st.button("🧹 Clear All"):
        clear_dialog(len(positions))


if __name__ == "__main__":
    main()
