import os

PREFAB_DOCTOR_MAX_PASSES = int(os.environ.get("PREFAB_DOCTOR_MAX_PASSES", "1"))
PREFAB_DOCTOR_JOBS = int(os.environ.get("PREFAB_DOCTOR_JOBS", "1"))
