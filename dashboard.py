import streamlit as st
import requests
import pandas as pd
import os
import logging

from xray_insight.presentation import PRIORITY_LABELS, format_report_text, sort_diagnosis, sort_recommendations

# ==============================================================================
# Application Configuration
# ==============================================================================
st.set_page_config(
    page_title="X-Ray Insight",
    page_icon="🩻",
    layout="wide"
)

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

# --- API Endpoint Configuration ---
# The FastAPI server; environment variables win over the local defaults.
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", 3001))
API_BASE = f"http://{API_HOST}:{API_PORT}"
API_ENDPOINT = f"{API_BASE}/api/analyze"

# ==============================================================================
# Main Application UI
# ==============================================================================

# --- Header Section ---
st.title("🩻 X-Ray Insight: Radiograph Analysis")
st.markdown("""
Upload an X-ray (JPG, PNG or DICOM, up to 10MB) together with the patient's details.
The image is described by a vision model and turned into a structured report with
recommendations and similar reference cases.
""")

try:
    health = requests.get(f"{API_BASE}/api/health", timeout=5).json()
    if health.get("visionEnabled"):
        st.info("**API Status:** online, vision model enabled.")
    else:
        st.warning("**API Status:** online, vision model disabled (reports use the deterministic fallback).")
except requests.exceptions.RequestException:
    st.error(f"**API Status:** cannot reach the backend at `{API_BASE}`")

# --- Patient Form & Uploader ---
st.header("1. Patient and Image")
with st.form("analysis_form"):
    col1, col2 = st.columns(2)
    with col1:
        first_name = st.text_input("First name")
        last_name = st.text_input("Last name")
    with col2:
        age = st.number_input("Age", min_value=0, max_value=150, value=40, step=1)
        doctor_name = st.text_input("Doctor")
    uploaded_file = st.file_uploader("X-ray image", type=['jpg', 'jpeg', 'png', 'dcm', 'dicom'])
    submitted = st.form_submit_button("Analyze")

# --- Processing and Result Display ---
if submitted and uploaded_file is not None:
    logging.info(f"File uploaded: {uploaded_file.name}")
    patient = {
        "firstName": first_name,
        "lastName": last_name,
        "age": str(int(age)),
        "doctorName": doctor_name,
    }

    with st.spinner('Analyzing the X-ray... The vision model may need a moment to warm up.'):
        try:
            files = {'xrayImage': (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type)}
            response = requests.post(API_ENDPOINT, files=files, data=patient, timeout=600)

            if response.status_code == 200:
                api_data = response.json()
                analysis = api_data.get('analysis', {})
                st.success(f"Analysis complete in {api_data.get('processingTime', 'N/A')}.")

                st.header("2. Report")
                col1, col2 = st.columns(2)

                with col1:
                    st.subheader("🩺 Diagnosis")
                    st.metric("Overall confidence", f"{analysis.get('confidence', 0) * 100:.0f}%")
                    df_diagnosis = pd.DataFrame(sort_diagnosis(analysis.get('diagnosis', [])))
                    if not df_diagnosis.empty:
                        df_diagnosis['confidence'] = (df_diagnosis['confidence'] * 100).round().astype(int).astype(str) + '%'
                        st.dataframe(df_diagnosis[['text', 'confidence']], hide_index=True)

                with col2:
                    st.subheader("📋 Recommendations")
                    for item in sort_recommendations(analysis.get('recommendations', [])):
                        st.write(f"{PRIORITY_LABELS.get(item['priority'], item['priority'])}: {item['text']}")

                st.markdown("---")
                st.subheader("🗂️ Similar Cases")
                cases = analysis.get('similarCases', [])
                for column, case in zip(st.columns(max(len(cases), 1)), cases):
                    with column:
                        st.image(case['imageUrl'], caption=f"{case['diagnosis']} ({case['match']}% match)")
                        st.caption(case['description'])

                st.download_button(
                    "Download report (.txt)",
                    data=format_report_text(analysis, patient),
                    file_name=f"xray_report_{last_name or 'patient'}.txt",
                    mime="text/plain",
                )
            else:
                st.error(f"Analysis Failed. (Status Code: {response.status_code})")
                st.json(response.json())

        except requests.exceptions.RequestException as e:
            st.error(f"**Connection Error:** Could not connect to the API server. Error: {e}")
elif submitted:
    st.warning("Please choose an X-ray image first.")
