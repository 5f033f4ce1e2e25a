import json
import psycopg
from config import DATABASE_URL
from schemas import TaxReturnData, UnderwritingReport


def get_connection():
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is empty or not set in .env")
    conn_str = DATABASE_URL
    if "sslmode" not in conn_str:
        conn_str += ("&" if "?" in conn_str else "?") + "sslmode=require"
    return psycopg.connect(conn_str)


def init_db():
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("""
                CREATE EXTENSION IF NOT EXISTS "pgcrypto";

                DO $$ BEGIN
                    CREATE TYPE underwriting_status AS ENUM (
                        'NEW', 'PROCESSING', 'FINALIZED', 'FAILED'
                    );
                EXCEPTION WHEN duplicate_object THEN null;
                END $$;

                CREATE TABLE IF NOT EXISTS leads (
                    id                    UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    first_name            TEXT NOT NULL DEFAULT '',
                    last_name             TEXT NOT NULL DEFAULT '',
                    email                 TEXT NOT NULL DEFAULT '',
                    company               TEXT,
                    business_name         TEXT,
                    industry              TEXT,
                    stage                 TEXT NOT NULL DEFAULT 'New',
                    deal_stage            TEXT,
                    loan_program          TEXT,
                    loan_amount           FLOAT NOT NULL DEFAULT 0,
                    noi                   FLOAT NOT NULL DEFAULT 0,
                    existing_debt_service FLOAT NOT NULL DEFAULT 0,
                    appraised_value       FLOAT NOT NULL DEFAULT 0,
                    total_project_cost    FLOAT NOT NULL DEFAULT 0,
                    lead_score            INT,
                    status                underwriting_status DEFAULT 'NEW',
                    created_at            TIMESTAMP DEFAULT NOW(),
                    updated_at            TIMESTAMP DEFAULT NOW()
                );

                CREATE TABLE IF NOT EXISTS tax_returns (
                    id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    lead_id              UUID REFERENCES leads(id) ON DELETE CASCADE,
                    form_type            TEXT NOT NULL,
                    year                 INT NOT NULL,
                    gross_revenue        FLOAT NOT NULL DEFAULT 0,
                    net_income           FLOAT NOT NULL DEFAULT 0,
                    depreciation         FLOAT NOT NULL DEFAULT 0,
                    interest_expense     FLOAT NOT NULL DEFAULT 0,
                    officer_compensation FLOAT NOT NULL DEFAULT 0,
                    rent_expense         FLOAT NOT NULL DEFAULT 0,
                    taxes_paid           FLOAT,
                    amortization         FLOAT,
                    notes                TEXT,
                    UNIQUE (lead_id, year)
                );

                CREATE TABLE IF NOT EXISTS underwriting_memos (
                    id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    lead_id              UUID REFERENCES leads(id) ON DELETE CASCADE,
                    spread               JSONB NOT NULL,
                    physics_status       TEXT NOT NULL,
                    physics              JSONB NOT NULL,
                    scorecard            JSONB NOT NULL,
                    final_verdict        TEXT NOT NULL,
                    risk_score           INT NOT NULL,
                    final_recommendation TEXT NOT NULL,
                    degraded             BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at           TIMESTAMP DEFAULT NOW()
                );

                CREATE TABLE IF NOT EXISTS council_opinions (
                    id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    memo_id     UUID REFERENCES underwriting_memos(id) ON DELETE CASCADE,
                    persona     TEXT NOT NULL,
                    verdict     TEXT NOT NULL,
                    confidence  FLOAT NOT NULL,
                    analysis    TEXT,
                    key_points  JSONB,
                    degraded    BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at  TIMESTAMP DEFAULT NOW()
                );
            """)
        conn.commit()
    print("[DB] Tables ready.")


def fetch_and_lock_lead() -> dict | None:
    """Claim the oldest NEW lead together with its most recent tax return (raw rows)."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("""
                SELECT l.id, l.first_name, l.last_name, l.email, l.company, l.business_name,
                       l.industry, l.stage, l.deal_stage, l.loan_program, l.loan_amount,
                       l.noi, l.existing_debt_service, l.appraised_value, l.total_project_cost,
                       t.form_type, t.year, t.gross_revenue, t.net_income, t.depreciation,
                       t.interest_expense, t.officer_compensation, t.rent_expense,
                       t.taxes_paid, t.amortization, t.notes
                FROM leads l
                JOIN LATERAL (
                    SELECT * FROM tax_returns
                    WHERE lead_id = l.id
                    ORDER BY year DESC
                    LIMIT 1
                ) t ON TRUE
                WHERE l.status = 'NEW'
                ORDER BY l.created_at
                FOR UPDATE OF l SKIP LOCKED
                LIMIT 1;
            """)
            row = cur.fetchone()
            if not row:
                return None

            lead_id = str(row[0])
            cur.execute("""
                UPDATE leads SET status = 'PROCESSING', updated_at = NOW()
                WHERE id = %s;
            """, (lead_id,))
        conn.commit()

    return {
        "id": lead_id,
        "lead": {
            "id":            lead_id,
            "first_name":    row[1],
            "last_name":     row[2],
            "email":         row[3],
            "company":       row[4],
            "business_name": row[5],
            "industry":      row[6],
            "stage":         row[7],
            "deal_stage":    row[8],
            "loan_program":  row[9],
            "loan_amount":   row[10],
            "financials": {
                "noi":                   row[11],
                "existing_debt_service": row[12],
                "appraised_value":       row[13],
                "total_project_cost":    row[14],
            },
        },
        "tax_return": {
            "form_type":            row[15],
            "year":                 row[16],
            "gross_revenue":        row[17],
            "net_income":           row[18],
            "depreciation":         row[19],
            "interest_expense":     row[20],
            "officer_compensation": row[21],
            "rent_expense":         row[22],
            "taxes_paid":           row[23],
            "amortization":         row[24],
            "notes":                row[25],
        },
    }


def insert_lead(lead: dict, tax_return: dict) -> str:
    f = lead.get("financials") or {}
    row = {
        **{k: lead.get(k) for k in ("company", "business_name", "industry", "deal_stage", "loan_program")},
        "first_name":            lead.get("first_name", ""),
        "last_name":             lead.get("last_name", ""),
        "email":                 lead.get("email", ""),
        "stage":                 lead.get("stage", "New"),
        "loan_amount":           lead.get("loan_amount", 0),
        "noi":                   f.get("noi", 0),
        "existing_debt_service": f.get("existing_debt_service", 0),
        "appraised_value":       f.get("appraised_value", 0),
        "total_project_cost":    f.get("total_project_cost", 0),
    }
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("""
                INSERT INTO leads (
                    first_name, last_name, email, company, business_name, industry,
                    stage, deal_stage, loan_program, loan_amount,
                    noi, existing_debt_service, appraised_value, total_project_cost
                )
                VALUES (
                    %(first_name)s, %(last_name)s, %(email)s, %(company)s, %(business_name)s, %(industry)s,
                    %(stage)s, %(deal_stage)s, %(loan_program)s, %(loan_amount)s,
                    %(noi)s, %(existing_debt_service)s, %(appraised_value)s, %(total_project_cost)s
                )
                RETURNING id;
            """, row)
            lead_id = str(cur.fetchone()[0])

            cur.execute("""
                INSERT INTO tax_returns (
                    lead_id, form_type, year, gross_revenue, net_income, depreciation,
                    interest_expense, officer_compensation, rent_expense,
                    taxes_paid, amortization, notes
                )
                VALUES (
                    %(lead_id)s, %(form_type)s, %(year)s, %(gross_revenue)s, %(net_income)s, %(depreciation)s,
                    %(interest_expense)s, %(officer_compensation)s, %(rent_expense)s,
                    %(taxes_paid)s, %(amortization)s, %(notes)s
                );
            """, TaxReturnData(**tax_return).model_dump() | {"lead_id": lead_id})
        conn.commit()
    return lead_id


def save_results(lead_id: str, report: UnderwritingReport, lead_score: int):
    council  = report.council
    chairman = council.opinions[-1]

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("""
                INSERT INTO underwriting_memos
                    (lead_id, spread, physics_status, physics, scorecard,
                     final_verdict, risk_score, final_recommendation, degraded)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id;
            """, (
                lead_id,
                report.spread.model_dump_json(),
                report.physics.status,
                report.physics.model_dump_json(),
                report.scorecard.model_dump_json(),
                chairman.verdict,
                council.risk_score,
                council.final_recommendation,
                any(o.degraded for o in council.opinions),
            ))
            memo_id = str(cur.fetchone()[0])

            for opinion in council.opinions:
                cur.execute("""
                    INSERT INTO council_opinions
                        (memo_id, persona, verdict, confidence, analysis, key_points, degraded)
                    VALUES (%s, %s, %s, %s, %s, %s, %s);
                """, (
                    memo_id,
                    opinion.persona,
                    opinion.verdict,
                    opinion.confidence,
                    opinion.analysis,
                    json.dumps(opinion.key_points),
                    opinion.degraded,
                ))

            cur.execute("""
                UPDATE leads
                SET status = 'FINALIZED', lead_score = %s, updated_at = NOW()
                WHERE id = %s;
            """, (lead_score, lead_id))

        conn.commit()


def mark_failed(lead_id: str):
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("""
                UPDATE leads SET status = 'FAILED', updated_at = NOW()
                WHERE id = %s;
            """, (lead_id,))
        conn.commit()
