import os
import logging
import pandas as pd
from tqdm import tqdm

from xray_insight.analysis import XrayAnalyzer
from xray_insight.config import load_settings
from xray_insight.errors import AnalysisError
from xray_insight.models import PatientData
from xray_insight.uploads import is_allowed_extension

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logging.getLogger('urllib3').setLevel(logging.WARNING)


def main():
    """Analyzes every X-ray in the batch input directory and writes the reports to one CSV."""
    logging.info("--- Starting X-Ray Insight Batch Pipeline ---")

    # Step 1: control panel
    settings = load_settings()
    batch = settings.batch
    analyzer = XrayAnalyzer(settings)

    # Batch images come without a form, so a placeholder patient is used
    patient = PatientData(first_name="Batch", last_name="Patient", age=batch.default_age, doctor_name="N/A")

    # Step 2: collect images
    if not os.path.isdir(batch.input_dir):
        logging.error(f"Input directory {batch.input_dir} not found! Please create it.")
        return
    all_files = sorted(
        os.path.join(batch.input_dir, f) for f in os.listdir(batch.input_dir)
        if is_allowed_extension(f, settings.uploads.allowed_extensions)
    )
    logging.info(f"Found {len(all_files)} images to process.")

    # Step 3: analyze, one CSV row per diagnosis item
    final_results = []
    for file_path in tqdm(all_files, desc="Analyzing X-rays"):
        try:
            analysis = analyzer.analyze(file_path, patient)
        except AnalysisError as e:
            logging.warning(f"Skipping {os.path.basename(file_path)}: {e}")
            continue

        top_recommendation = analysis.recommendations[0].text if analysis.recommendations else ""
        for rank, item in enumerate(analysis.diagnosis):
            final_results.append({
                "source_file": os.path.basename(file_path),
                "rank": rank,
                "diagnosis": item.text,
                "confidence": round(item.confidence, 4),
                "report_confidence": round(analysis.confidence, 4),
                "top_recommendation": top_recommendation,
                "similar_case": analysis.similar_cases[0].diagnosis if analysis.similar_cases else "",
            })

    # Step 4: save
    if final_results:
        os.makedirs(os.path.dirname(batch.output_csv) or ".", exist_ok=True)
        df = pd.DataFrame(final_results)
        df.to_csv(batch.output_csv, index=False)
        logging.info("--- Pipeline Finished ---")
        logging.info(f"Processed {len(all_files)} images. Results saved to {batch.output_csv}")
    else:
        logging.warning("No reports were produced.")


if __name__ == '__main__':
    main()
