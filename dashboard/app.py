"""Streamlit front desk for the pet hotel API."""

from __future__ import annotations

import datetime
import json
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("PETHOTEL_API_URL", "http://127.0.0.1:8000")

BOOKING_STATUSES = ["待處理", "安排入住", "已入住", "已退房", "已取消"]
FEEDING_OPTIONS = ["全部吃完", "剩下一點", "沒啥胃口", "未進食"]
LITTER_OPTIONS = ["漂亮成型", "有點軟便", "拉肚子了", "還沒便便"]
CARE_MENTAL_OPTIONS = ["電力滿格", "穩重安靜", "懶懶的", "顯得緊張"]
CELL_LABELS = {"VACANT": "", "OCCUPIED": "●", "LOCKED": "🔒", "MAINTENANCE": "🧹"}

st.set_page_config(
    page_title="Pet Hotel Front Desk",
    page_icon="🐾",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def api_call(method: str, path: str, **kwargs: Any) -> Optional[Any]:
    """Call the backend; show the API's error detail instead of raising."""
    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            headers=_headers(),
            timeout=kwargs.pop("timeout", 10),
            **kwargs,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None
    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        st.error(f"{response.status_code}: {detail}")
        return None
    if response.status_code == 204 or not response.content:
        return {}
    return response.json()


def fetch_pets() -> List[Dict[str, Any]]:
    return api_call("GET", "/pets") or []


def pet_names(pets: List[Dict[str, Any]]) -> Dict[str, str]:
    return {pet["id"]: pet["name"] for pet in pets}


# ==========================================
# UI Page Functions
# ==========================================
def render_login() -> None:
    st.header("🔐 Front Desk Login")
    password = st.text_input("Admin password", type="password")
    if st.button("Login", type="primary"):
        result = api_call("POST", "/login", json={"password": password})
        if result:
            st.session_state["access_token"] = result["access_token"]
            st.rerun()


def render_overview_page() -> None:
    st.header("📊 Today at the Hotel")
    today = st.date_input("Day", datetime.date.today())
    summary = api_call("GET", "/dashboard/summary", params={"day": str(today)})
    if summary:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Occupancy", f"{summary['occupancy_rate']}%", help=f"{summary['occupied']} checked in")
        col2.metric("Check-ins today", summary["check_ins_today"])
        col3.metric("Check-outs today", summary["check_outs_today"])
        col4.metric(
            "Revenue this month",
            f"${summary['monthly_revenue']:,.0f}",
            delta=f"{summary['revenue_growth']:.1f}%",
        )

    trend = api_call("GET", "/dashboard/trend", params={"day": str(today), "months": 6})
    if trend:
        df = pd.DataFrame(trend).set_index("month")
        st.write("### Last six months")
        chart_col1, chart_col2 = st.columns(2)
        chart_col1.bar_chart(df["revenue"])
        chart_col2.line_chart(df["occupancy"])

    board = api_call("GET", "/rooms/board", params={"day": str(today)})
    if board:
        st.write("### Room board")
        rows = [
            {
                "Room": item["room"]["name"],
                "Floor": item["room"]["floor"],
                "Status": item["availability"]["kind"],
                "Booking": item["availability"].get("booking_id") or "",
                "Locked by": item["availability"].get("partner_room") or "",
                "Guests": ", ".join(item["pet_names"]),
            }
            for item in board["rooms"]
        ]
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def render_schedule_page() -> None:
    st.header("🗓️ Monthly Schedule")
    month = st.text_input("Month (YYYY-MM)", datetime.date.today().strftime("%Y-%m"))
    result = api_call("GET", "/rooms/schedule", params={"month": month})
    if not result:
        return
    cells = pd.DataFrame(
        [
            {
                "room": cell["room_name"],
                "day": cell["day"][-2:],
                "mark": CELL_LABELS.get(cell["availability"]["kind"], "?"),
            }
            for cell in result["cells"]
        ]
    )
    grid = cells.pivot(index="room", columns="day", values="mark")
    room_order = list(dict.fromkeys(cells["room"]))
    st.dataframe(grid.reindex(room_order), use_container_width=True)
    st.caption("● occupied · 🔒 locked by a connected room · 🧹 maintenance")

    st.write("### Room maintenance")
    rooms = api_call("GET", "/rooms") or []
    col1, col2 = st.columns(2)
    with col1:
        room_name = st.selectbox("Room", [room["name"] for room in rooms])
    with col2:
        new_status = st.selectbox("Status", ["空房", "清潔維護"])
    if st.button("Update room status") and room_name:
        if api_call("PUT", f"/rooms/{quote(room_name)}/status", json={"status": new_status}):
            st.success(f"{room_name} → {new_status}")


def render_bookings_page() -> None:
    st.header("📒 Bookings")
    pets = fetch_pets()
    names = pet_names(pets)

    month = st.text_input("Month filter (YYYY-MM)", datetime.date.today().strftime("%Y-%m"))
    listing = api_call("GET", "/bookings", params={"month": month})
    if listing:
        st.metric("Month total", f"${listing.get('monthly_total') or 0:,.0f}")
        df = pd.DataFrame(listing["bookings"])
        if not df.empty:
            df["pets"] = df["pet_ids"].apply(lambda ids: ", ".join(names.get(i, i) for i in ids))
            st.dataframe(
                df[["id", "pets", "check_in", "check_out", "room_number", "status", "total_price"]],
                use_container_width=True,
                hide_index=True,
            )

    st.write("### New booking")
    col1, col2 = st.columns(2)
    with col1:
        check_in = st.date_input("Check-in", datetime.date.today())
    with col2:
        check_out = st.date_input("Check-out", datetime.date.today() + datetime.timedelta(days=1))

    selectable: List[str] = []
    if check_in < check_out:
        availability = api_call(
            "GET",
            "/bookings/availability",
            params={"check_in": str(check_in), "check_out": str(check_out)},
        )
        if availability:
            selectable = availability["selectable_rooms"]
            if availability["unavailable_rooms"]:
                st.caption("Unavailable: " + ", ".join(availability["unavailable_rooms"]))
    else:
        st.warning("Check-out must be after check-in.")

    chosen_pets = st.multiselect("Pets", list(names), format_func=lambda pid: names[pid])
    room = st.selectbox("Room", ["未分配", *selectable])
    price = st.number_input("Total price", min_value=0.0, value=0.0, step=100.0)
    notes = st.text_area("Notes")
    if st.button("Create booking", type="primary"):
        created = api_call(
            "POST",
            "/bookings",
            json={
                "pet_ids": chosen_pets,
                "check_in": str(check_in),
                "check_out": str(check_out),
                "room_number": room,
                "total_price": price,
                "notes": notes,
            },
        )
        if created:
            st.success(f"Booking {created['id']} created")

    st.write("### Change status")
    col_a, col_b = st.columns(2)
    with col_a:
        booking_id = st.text_input("Booking ID")
    with col_b:
        target_status = st.selectbox("New status", BOOKING_STATUSES)
    if st.button("Apply status") and booking_id:
        if api_call("POST", f"/bookings/{booking_id}/status", json={"status": target_status}):
            st.success("Status updated")


def render_pets_page() -> None:
    st.header("🐱 Pets")
    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("Search by name or breed, or describe the pet")
    with col2:
        smart = st.checkbox("Smart search")
    results = api_call("GET", "/pets", params={"q": query, "smart": smart}) if query else fetch_pets()
    if results:
        st.dataframe(
            pd.DataFrame(results)[["id", "name", "breed", "gender", "age", "owner_name", "allergens"]],
            use_container_width=True,
            hide_index=True,
        )

    st.write("### Quick add")
    name = st.text_input("Pet name")
    if st.button("Add pet") and name.strip():
        created = api_call("POST", "/pets/quick_add", json={"name": name})
        if created:
            st.success(f"{created['name']} added ({created['id']})")


def render_care_page() -> None:
    st.header("📝 Daily Care Logs")
    day = st.date_input("Day", datetime.date.today())
    stays = api_call("GET", "/care/in_house", params={"day": str(day)}) or []
    st.caption(f"{len(stays)} pets in house")
    for stay in stays:
        pet = stay["pet"]
        with st.expander(f"{pet['name']} · room {stay['room_number']}" + (" ✅" if stay["has_log"] else "")):
            feeding = st.selectbox("Feeding", FEEDING_OPTIONS, key=f"feed-{pet['id']}")
            litter = st.selectbox("Litter", LITTER_OPTIONS, key=f"litter-{pet['id']}")
            mental = st.selectbox("Mood", CARE_MENTAL_OPTIONS, key=f"mental-{pet['id']}")
            notes_key = f"notes-{pet['id']}"
            if st.button("Draft message", key=f"draft-{pet['id']}"):
                drafted = api_call(
                    "POST",
                    f"/care/messages/{pet['id']}",
                    json={"feeding_status": feeding, "litter_status": litter, "mental_status": mental},
                    timeout=40,
                )
                if drafted:
                    st.session_state[notes_key] = drafted["text"]
            notes = st.text_area("Message to owner", key=notes_key)
            if st.button("Save log", key=f"save-{pet['id']}"):
                saved = api_call(
                    "PUT",
                    f"/care/logs/{pet['id']}/{day}",
                    json={
                        "feeding_status": feeding,
                        "litter_status": litter,
                        "mental_status": mental,
                        "notes": notes,
                    },
                )
                if saved:
                    st.success("Saved")


def render_backup_page() -> None:
    st.header("☁️ Backup & Sync")
    exported = api_call("GET", "/backup/export")
    if exported:
        st.download_button(
            "Download backup",
            data=json.dumps(exported, ensure_ascii=False, indent=2),
            file_name=f"pethotel-backup-{datetime.date.today()}.json",
            mime="application/json",
        )

    uploaded = st.file_uploader("Restore from backup", type=["json"])
    if uploaded is not None and st.button("Import backup"):
        try:
            document = json.loads(uploaded.getvalue().decode("utf-8"))
        except ValueError as e:
            st.error(f"Not a JSON file: {e}")
        else:
            if api_call("POST", "/backup/import", json=document):
                st.success("Backup restored")

    st.write("### Cloud sync")
    sync_key = st.text_input("Sync key")
    col1, col2 = st.columns(2)
    if col1.button("Push to cloud") and sync_key:
        result = api_call("POST", "/sync/push", json={"sync_key": sync_key}, timeout=20)
        if result:
            st.success(f"Uploaded {result['bookings']} bookings and {result['pets']} pets")
    if col2.button("Pull from cloud") and sync_key:
        result = api_call("POST", "/sync/pull", json={"sync_key": sync_key}, timeout=20)
        if result:
            st.success(f"Restored {result['bookings']} bookings and {result['pets']} pets")


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    health = api_call("GET", "/health")
    if health and health.get("auth_enabled") and not st.session_state.get("access_token"):
        render_login()
        return

    st.sidebar.title("Pet Hotel")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        ["Overview", "Schedule", "Bookings", "Pets", "Daily Care", "Backup & Sync"],
    )

    st.sidebar.markdown("---")
    if health:
        st.sidebar.caption(f"{health['app_name']} v{health['app_version']}")

    if page == "Overview":
        render_overview_page()
    elif page == "Schedule":
        render_schedule_page()
    elif page == "Bookings":
        render_bookings_page()
    elif page == "Pets":
        render_pets_page()
    elif page == "Daily Care":
        render_care_page()
    elif page == "Backup & Sync":
        render_backup_page()


if __name__ == "__main__":
    main()
