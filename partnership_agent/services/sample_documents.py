"""
Sample partnership documents used to seed an empty search index.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from partnership_agent.schemas.documents import Document
from partnership_agent.utils.timing import utc_now


def _days_ago(days: int) -> datetime:
    return utc_now() - timedelta(days=days)


def sample_documents(tenant_id: str = "tenant-123") -> list[Document]:
    return [
        Document(
            id="doc1",
            title="Partnership Agreement Template",
            content=(
                "Partnership Formation and Scope: All partnerships must be formalized through written "
                "agreements that clearly define roles, responsibilities, and expectations.\n"
                "Revenue Sharing Structure: Partner compensation is structured in multiple tiers based "
                "on contribution levels:\n"
                "- Tier 1 Partners (Strategic): Receive 30-35% of net revenue from direct contributions\n"
                "- Tier 2 Partners (Operational): Receive 20-25% of net revenue from operational support\n"
                "- Tier 3 Partners (Referral): Receive 10-15% of net revenue from referral activities\n"
                "Minimum Contribution Requirements: All partners must maintain minimum contribution levels:\n"
                "- Strategic partners: Minimum 20 hours per month of active engagement\n"
                "- Operational partners: Minimum 15 hours per month of operational support\n"
                "- Referral partners: Minimum 2 qualified referrals per quarter\n"
                "Performance Metrics: Partner performance is evaluated quarterly based on revenue "
                "generation and growth, client satisfaction scores (minimum 4.5/5.0), operational "
                "efficiency metrics, and compliance with partnership standards."
            ),
            category="templates",
            tenant_id=tenant_id,
            score=0.95,
            last_modified=_days_ago(30),
        ),
        Document(
            id="doc2",
            title="Revenue Sharing Guidelines",
            content=(
                "Gross Revenue Determination: Gross revenue includes all income streams directly "
                "attributable to partnership activities, including direct sales revenue from "
                "partnership-generated clients, recurring subscription revenue from partner referrals, "
                "service fees from partner-delivered projects, and commission from third-party "
                "integrations.\n"
                "Net Revenue Calculation: Net revenue is calculated by deducting the following from "
                "gross revenue: direct costs of goods sold (COGS), operational expenses directly related "
                "to partnership activities, platform fees and transaction costs, and bad debt provisions "
                "(maximum 2% of gross revenue).\n"
                "Partner Share Distribution: Partner shares are distributed according to contribution tiers:\n"
                "- Tier 1 (Strategic Partners): 30% of net revenue, paid monthly\n"
                "- Tier 2 (Operational Partners): 20% of net revenue, paid monthly\n"
                "- Tier 3 (Referral Partners): 10% of net revenue, paid quarterly\n"
                "Payment Terms: Payments are made within 30 days of month/quarter end. Minimum payment "
                "threshold: $100 per payment period. Payments below threshold are carried forward to "
                "next period. All payments subject to applicable tax withholding."
            ),
            category="guidelines",
            tenant_id=tenant_id,
            score=0.87,
            last_modified=_days_ago(25),
        ),
        Document(
            id="doc3",
            title="Partnership Compliance Requirements",
            content=(
                "Documentation Standards: Maintain detailed records of all partnership activities, "
                "document all revenue streams and partner contributions, preserve communication logs "
                "for minimum 7 years, and ensure data privacy compliance (GDPR, CCPA).\n"
                "Financial Reporting: Quarterly financial reports must include partner revenue breakdown "
                "by tier and individual, expense allocation and cost center reporting, compliance "
                "certification from authorized personnel, and independent audit trail for all "
                "transactions above $10,000.\n"
                "Partner Verification: Initial verification includes background check and business "
                "license validation, financial stability assessment (minimum credit score 650), "
                "professional references verification (minimum 3 references), and compliance with "
                "industry-specific regulations.\n"
                "Ongoing Verification: Annual compliance review and certification, quarterly performance "
                "assessment, immediate reporting of any regulatory violations, and continuous monitoring "
                "of partner business status.\n"
                "Audit Requirements: Internal audits conducted semi-annually, external audits by "
                "certified public accountants annually, regulatory audits as required by governing "
                "bodies, and partner self-assessment reports submitted quarterly."
            ),
            category="policies",
            tenant_id=tenant_id,
            score=0.82,
            last_modified=_days_ago(20),
        ),
        Document(
            id="doc4",
            title="Standard Partnership Contract",
            content=(
                "Intellectual Property Rights: Each party retains ownership of intellectual property "
                "existing prior to partnership formation. Intellectual property developed jointly during "
                "partnership activities has shared ownership between contributing parties, revenue "
                "sharing applies to IP monetization, licensing decisions require mutual consent, and "
                "each party may use joint IP for partnership purposes.\n"
                "Liability Distribution: Individual liability - each partner is liable for their own "
                "negligent acts or omissions, breach of partnership agreement terms, violations of "
                "applicable laws and regulations, and unauthorized use of partnership resources. Joint "
                "liability - partners share joint liability for partnership debts and obligations, "
                "third-party claims arising from partnership activities, regulatory fines and penalties, "
                "and insurance deductibles and uncovered losses.\n"
                "Termination Procedures: Voluntary termination requires 90-day written notice, "
                "completion of ongoing client commitments, final revenue sharing calculation and "
                "payment, and return of confidential information and materials. Termination for cause - "
                "immediate termination permitted for material breach of contract terms, criminal "
                "conviction affecting business reputation, bankruptcy or insolvency proceedings, and "
                "failure to meet minimum performance standards."
            ),
            category="contracts",
            tenant_id=tenant_id,
            score=0.91,
            last_modified=_days_ago(15),
        ),
        Document(
            id="doc7",
            title="Performance Metrics and KPIs",
            content=(
                "Revenue Performance: Monthly Recurring Revenue (MRR) from partner activities, Customer "
                "Acquisition Cost (CAC) for partner-generated leads, Customer Lifetime Value (CLV) from "
                "partner relationships, and revenue growth rate quarter-over-quarter.\n"
                "Operational Excellence: Project delivery time (target: within 10% of estimated "
                "timeline), customer satisfaction scores (minimum: 4.5/5.0), defect rates and rework "
                "percentages (maximum: 5%), Service level agreement compliance (minimum: 95%), response "
                "time to partner communications (target: 24 hours), meeting attendance rates (minimum: "
                "85%), knowledge sharing participation, and cross-training and skill development progress.\n"
                "Strategic Alignment: New market segment penetration, geographic expansion success, "
                "competitive positioning improvement, brand recognition and market share growth, new "
                "product/service development contributions, process improvement implementations, "
                "technology advancement participation, and intellectual property creation and sharing.\n"
                "Performance Review Schedule: Monthly operational metrics review, quarterly comprehensive "
                "performance assessment, annual strategic alignment evaluation, and continuous "
                "improvement planning sessions."
            ),
            category="guidelines",
            tenant_id=tenant_id,
            score=0.92,
            last_modified=_days_ago(10),
        ),
    ]
