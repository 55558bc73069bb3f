"""
HIS Billing Dashboard
Interactive view over hospital billing line items: KPIs, alerts, rollups
"""
import io
from dataclasses import replace
import streamlit as st
import pandas as pd
import plotly.express as px
from his_dashboard.analysis.categories import VISIT_TYPE_LABELS, VisitType
from his_dashboard.analysis.charts import diagnosis_trend
from his_dashboard.analysis.filters import (
    DATE_PRESETS, FilterState, date_preset, default_date_range, filter_options,
)
from his_dashboard.core.config import MAX_TREND_DIAGNOSES
from his_dashboard.core.errors import DataSourceError
from his_dashboard.reporting.report import export_csv, format_currency, format_number
from his_dashboard.services.pipeline import build_view, load_dataset

st.set_page_config(page_title="HIS Dashboard", layout="wide")

PRESET_LABELS = {
    "today": "Hôm nay", "yesterday": "Hôm qua", "last7days": "7 ngày qua",
    "thisMonth": "Tháng này", "lastMonth": "Tháng trước",
    "thisQuarter": "Quý này", "thisYear": "Năm nay",
}
FILTER_LABELS = {
    "department": "Khoa điều trị",
    "doctor": "Bác sĩ chỉ định",
    "object_type": "Đối tượng",
    "treatment_outcome": "Kết quả điều trị",
    "service_group": "Nhóm dịch vụ",
    "visit_type_code": "Loại KCB",
    "diagnosis_code": "Mã bệnh",
    "discharge_status": "Tình trạng ra viện",
}

@st.cache_data(show_spinner="Đang xử lý...")
def load_from_bytes(content: bytes) -> pd.DataFrame:
    return load_dataset(io.BytesIO(content))

@st.cache_data(ttl=300, show_spinner="Đang tải về...")
def load_from_url(url: str) -> pd.DataFrame:
    return load_dataset(url)

def download_button(label, rows, file_name):
    if rows:
        st.download_button(label, export_csv(rows).encode("utf-8-sig"), file_name=f"{file_name}.csv", mime="text/csv")

def bar(rows, x="name", y="value", title="", color="#636EFA"):
    if not rows:
        st.info("Không có dữ liệu")
        return
    fig = px.bar(pd.DataFrame(rows), x=x, y=y, title=title, color_discrete_sequence=[color])
    fig.update_layout(height=350)
    st.plotly_chart(fig, use_container_width=True)

def pie(rows, title=""):
    if not rows:
        st.info("Không có dữ liệu")
        return
    fig = px.pie(pd.DataFrame(rows), values="value", names="name", hole=0.4, title=title)
    fig.update_traces(textposition="inside", textinfo="percent+label")
    fig.update_layout(height=350)
    st.plotly_chart(fig, use_container_width=True)

# Main app
st.title("HIS Billing Dashboard")
st.markdown("Phân tích chi phí khám chữa bệnh từ dữ liệu xuất HIS")

# Data source
with st.sidebar:
    st.subheader("Nguồn dữ liệu")
    mode = st.radio("Nguồn", ["File CSV", "Google Sheet"], horizontal=True)
    records = None
    try:
        if mode == "File CSV":
            upload = st.file_uploader("Tải File CSV lên", type=["csv"])
            if upload is not None:
                records = load_from_bytes(upload.getvalue())
        else:
            url = st.text_input("Dán link Google Sheet vào đây...")
            st.caption("Sheet phải được đặt ở chế độ \"Bất kỳ ai có liên kết\" (Anyone with the link can view).")
            if url:
                records = load_from_url(url)
    except DataSourceError as e:
        st.error(str(e))

if records is None:
    st.info("Chọn file CSV hoặc link Google Sheet để bắt đầu.")
    st.stop()

# Filters
span = default_date_range(records)
options = filter_options(records)
with st.sidebar:
    st.subheader("Bộ lọc")
    preset = st.selectbox("Phạm vi nhanh", ["custom"] + list(DATE_PRESETS),
                          format_func=lambda p: PRESET_LABELS.get(p, "Tùy chọn"))
    if preset == "custom":
        start = st.date_input("Từ ngày", span.start_date)
        end = st.date_input("Đến ngày", span.end_date)
    else:
        start, end = date_preset(preset)
        st.caption(f"{start:%d/%m/%Y} - {end:%d/%m/%Y}")

    chosen = {}
    for name, label in FILTER_LABELS.items():
        value = st.selectbox(label, [""] + options.get(name, []), format_func=lambda v: v or "Tất cả")
        chosen[name] = value
    chosen["service_name"] = st.text_input("Dịch vụ (tìm theo tên)")

filters = replace(FilterState(**chosen), start_date=start, end_date=end)
view = build_view(records, filters)
kpis = view.kpis
charts = view.rollups

# Alerts
for alert in view.alerts:
    box = {"danger": st.error, "warning": st.warning}.get(alert.severity, st.info)
    box(f"**{alert.message}** - {alert.detail}")

tab1, tab2, tab3, tab4 = st.tabs(["Tổng quan", "Khoa & Bác sĩ", "Bệnh tật (ICD)", "Dịch vụ & CP"])

with tab1:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Tổng lượt điều trị", format_number(kpis.total_visits))
    col2.metric("Tổng bệnh nhân", format_number(kpis.total_patients))
    col3.metric("Tổng chi phí", format_currency(kpis.total_cost))
    col4.metric("Số ngày điều trị TB", f"{kpis.avg_treatment_days:.1f}")

    col1, col2, col3, col4 = st.columns(4)
    for col, visit_type, count, revenue in [
        (col1, VisitType.CONSULTATION, kpis.count_consultation, kpis.revenue_consultation),
        (col2, VisitType.OUTPATIENT_TREATMENT, kpis.count_outpatient_treatment, kpis.revenue_outpatient_treatment),
        (col3, VisitType.INPATIENT, kpis.count_inpatient, kpis.revenue_inpatient),
        (col4, VisitType.OTHER, kpis.count_other, kpis.revenue_other),
    ]:
        col.metric(VISIT_TYPE_LABELS[visit_type], format_number(count))
        col.caption(format_currency(revenue))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Doanh thu thuốc", format_currency(kpis.medicine_revenue))
    col2.metric("Doanh thu CĐHA", format_currency(kpis.imaging_revenue))
    col3.metric("Doanh thu xét nghiệm", format_currency(kpis.lab_revenue))
    col4.metric("Tiền giường", format_currency(kpis.bed_revenue))

    col1, col2 = st.columns(2)
    with col1:
        pie(charts["revenue_structure"], "Cơ cấu doanh thu")
    with col2:
        pie(charts["cost_by_object_type"], "Chi phí theo đối tượng")

    if charts["by_date"]:
        by_date = pd.DataFrame(charts["by_date"])
        fig = px.line(by_date, x="date", y=["total_cost", "total_visits"], title="Chi phí và lượt theo ngày")
        st.plotly_chart(fig, use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        pie(charts["by_treatment_outcome"], "Kết quả điều trị")
    with col2:
        pie(charts["by_discharge_status"], "Tình trạng ra viện")
    bar(charts["revenue_by_discharge_status"], title="Doanh thu theo tình trạng ra viện", color="#AB63FA")

    st.text_area("Báo cáo", view.report(), height=300)

with tab2:
    col1, col2 = st.columns(2)
    with col1:
        bar(charts["cost_by_department"], title="Top 10 Khoa Chi Phí Cao")
        download_button("Xuất CSV", charts["cost_by_department"], "Top_Khoa")
    with col2:
        bar(charts["visits_by_department"], title="Top 10 Khoa Theo Lượt", color="#00CC96")

    col1, col2 = st.columns(2)
    with col1:
        bar(charts["by_doctor"], y="cost", title="Top 20 Bác sĩ (Chi phí)", color="#0ea5e9")
    with col2:
        pie(charts["doctor_pie"], "Tỷ trọng chi phí theo bác sĩ")

    st.markdown("**Chi tiết Tổng hợp Bác Sĩ**")
    st.dataframe(pd.DataFrame(charts["doctors"]), use_container_width=True, height=300)
    download_button("Xuất CSV", charts["doctors"], "Bac_Si")

with tab3:
    bar(charts["top_diagnoses"], title="Top 20 ICD Theo Lượt", color="#EF553B")
    download_button("Xuất CSV", charts["top_diagnoses"], "Top_ICD")

    codes = [r["name"] for r in charts["top_diagnoses"]]
    selected = st.multiselect("So sánh xu hướng bệnh", codes, max_selections=MAX_TREND_DIAGNOSES)
    if selected:
        trend = pd.DataFrame(diagnosis_trend(view.records, selected))
        if not trend.empty:
            fig = px.line(trend, x="date", y=[c for c in selected if c in trend.columns], markers=True)
            st.plotly_chart(fig, use_container_width=True)

with tab4:
    col1, col2 = st.columns(2)
    with col1:
        bar(charts["top_services"], title="Top 20 Dịch vụ (Chi phí)", color="#0ea5e9")
    with col2:
        bar(charts["top_services_by_quantity"], y="qty", title="Top 20 Dịch vụ (Số lượng)", color="#f59e0b")
    col1, col2 = st.columns(2)
    with col1:
        pie(charts["top_services_pie"], "Top dịch vụ")
    with col2:
        bar(charts["cost_by_group"], title="Chi phí theo nhóm dịch vụ", color="#FFA15A")
    download_button("Xuất CSV", charts["top_services"], "Top_Dich_Vu")

st.markdown("---")
st.caption("HIS Billing Dashboard")
