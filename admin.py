import asyncio
import hmac
from datetime import date

import streamlit as st

from dobao.core.config import settings
from dobao.models.db_models import BookingStatus
from dobao.services import report_service
from dobao.services.booking_service import BookingService

MONTHS = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]

# Page Config
st.set_page_config(
    page_title="Dobao Gourmet Admin",
    page_icon="🍷",
    layout="wide"
)

st.title("Dobao Gourmet - Panel de Administración")

if not settings.ADMIN_TOKEN:
    st.error("ADMIN_TOKEN no está configurado.")
    st.stop()

token = st.text_input("Token de administración", type="password")
if not hmac.compare_digest(token.encode(), settings.ADMIN_TOKEN.encode()):
    st.info("Introduce el token para ver las reservas.")
    st.stop()


def load_data():
    try:
        bookings = asyncio.run(BookingService().list_bookings())
    except Exception as e:
        st.error(f"Error al leer las reservas: {e}")
        return None
    return report_service.bookings_frame(bookings)


if st.button("Recargar datos"):
    st.rerun()

df = load_data()

if df is not None and not df.empty:
    years = sorted(set(df["date"].dt.year) | {date.today().year}, reverse=True)

    col_year, col_month = st.columns(2)
    year = col_year.selectbox("Año", ["Todos"] + years, index=1)
    month = col_month.selectbox("Mes", ["Todos"] + MONTHS)

    filtered = report_service.filter_period(
        df,
        year=None if year == "Todos" else int(year),
        month=None if month == "Todos" else MONTHS.index(month) + 1,
    )
    stats = report_service.summary(filtered)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Reservas", stats["total"])
    col2.metric("Pendientes", stats["by_status"][BookingStatus.PENDING.value])
    col3.metric("Importe eventos", f"{stats['event_cost']:.2f} €")
    col4.metric("Pendiente de cobro", f"{stats['outstanding']:.2f} €")

    st.subheader("Reservas")
    st.dataframe(
        filtered,
        use_container_width=True,
        column_config={
            "date": st.column_config.DateColumn("Fecha", format="DD/MM/YYYY"),
            "created_at": st.column_config.DatetimeColumn("Creada", format="D.M.YYYY HH:mm"),
            "slot": "Turno",
            "status": "Estado",
            "customer_name": "Cliente",
            "guests": "Invitados",
            "event_cost": "Coste",
            "deposit": "Señal",
            "id": "ID"
        }
    )
else:
    st.info("Todavía no hay reservas.")

st.markdown("---")
st.caption("Dobao Gourmet • Reservas privadas")
