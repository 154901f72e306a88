# config.py
import os

# ======= Exact backends =======
EXACT_TIME_LIMIT = float(os.getenv("RP_EXACT_TIME_LIMIT", "60"))
WORKERS          = int(os.getenv("RP_WORKERS", "1"))
MAX_MEMORY_MB    = int(os.getenv("RP_MAX_MEMORY_MB", "2048"))
RANDOM_SEED      = int(os.getenv("RP_RANDOM_SEED", "0"))

# Solver id handed to pywraplp.Solver.CreateSolver for the "mip" method.
MIP_SOLVER_ID    = os.getenv("RP_MIP_SOLVER_ID", "SCIP")

# Run exact solves in a spawned child so a runaway native solve can be killed.
ISOLATE_EXACT    = int(os.getenv("RP_ISOLATE_EXACT", "0")) != 0
ISOLATE_GRACE    = float(os.getenv("RP_ISOLATE_GRACE", "5"))

# ======= Simulated annealing =======
SA_K_MAX   = int(os.getenv("RP_SA_K_MAX", "10000"))
SA_INIT_T  = float(os.getenv("RP_SA_INIT_T", "10000"))
SA_LAMBDA  = float(os.getenv("RP_SA_LAMBDA", "0.999"))
SA_TIME_LIMIT = float(os.getenv("RP_SA_TIME_LIMIT", "0"))  # 0 disables the wall-clock cutoff

# ======= Escalation =======
ESC_K_START   = int(os.getenv("RP_ESC_K_START", "1000"))
ESC_T_START   = float(os.getenv("RP_ESC_T_START", "1000"))
ESC_K_GROWTH  = int(os.getenv("RP_ESC_K_GROWTH", "10"))
ESC_T_GROWTH  = float(os.getenv("RP_ESC_T_GROWTH", "100"))
ESC_K_CEILING = int(os.getenv("RP_ESC_K_CEILING", "1000000"))

# ======= Generation =======
GEN_SIZES        = os.getenv("RP_GEN_SIZES", "4,9,16,25")
GEN_MERGE_ITERS  = int(os.getenv("RP_GEN_MERGE_ITERS", "3"))
GEN_MERGE_PROB   = float(os.getenv("RP_GEN_MERGE_PROB", "0.5"))
GEN_PER_COMBO    = int(os.getenv("RP_GEN_PER_COMBO", "5"))

# ======= Batch / paths =======
DATA_DIR  = os.getenv("RP_DATA_DIR", "data")
RES_DIR   = os.getenv("RP_RES_DIR", "res")
METHODS   = os.getenv("RP_METHODS", "cp_sat,mip,heuristic")
DELIMITER = os.getenv("RP_DELIMITER", ",")


def _csv_ints(raw: str):
    return tuple(int(tok) for tok in raw.split(",") if tok.strip())


def _csv_names(raw: str):
    return tuple(tok.strip() for tok in raw.split(",") if tok.strip())


class CFG:
    EXACT_TIME_LIMIT = EXACT_TIME_LIMIT
    WORKERS          = WORKERS
    MAX_MEMORY_MB    = MAX_MEMORY_MB
    RANDOM_SEED      = RANDOM_SEED
    MIP_SOLVER_ID    = MIP_SOLVER_ID
    ISOLATE_EXACT    = ISOLATE_EXACT
    ISOLATE_GRACE    = ISOLATE_GRACE

    SA_K_MAX      = SA_K_MAX
    SA_INIT_T     = SA_INIT_T
    SA_LAMBDA     = SA_LAMBDA
    SA_TIME_LIMIT = SA_TIME_LIMIT

    ESC_K_START   = ESC_K_START
    ESC_T_START   = ESC_T_START
    ESC_K_GROWTH  = ESC_K_GROWTH
    ESC_T_GROWTH  = ESC_T_GROWTH
    ESC_K_CEILING = ESC_K_CEILING

    GEN_SIZES       = _csv_ints(GEN_SIZES)
    GEN_MERGE_ITERS = GEN_MERGE_ITERS
    GEN_MERGE_PROB  = GEN_MERGE_PROB
    GEN_PER_COMBO   = GEN_PER_COMBO

    DATA_DIR  = DATA_DIR
    RES_DIR   = RES_DIR
    METHODS   = _csv_names(METHODS)
    DELIMITER = DELIMITER


__all__ = ["CFG"]
