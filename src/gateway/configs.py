"""Per-document-type extraction tables and the fixed AI prompts."""
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class ExtractionField:
    key: str
    type: str
    description: str

    def to_box_field(self) -> dict:
        return {
            "key": self.key,
            "type": "string" if self.type == "date" else self.type,
            "description": self.description,
            "prompt": f"What is the {self.description.lower()}?",
        }


@dataclass(frozen=True)
class ExtractionConfig:
    name: str
    prompt: str
    fields: List[ExtractionField] = field(default_factory=list)

    @property
    def field_keys(self) -> List[str]:
        return [f.key for f in self.fields]


def _fields(*rows) -> List[ExtractionField]:
    return [ExtractionField(key, kind, description) for key, kind, description in rows]


EXTRACTION_CONFIGS: Dict[str, ExtractionConfig] = {
    "fnol": ExtractionConfig(
        name="FNOL_Extraction",
        prompt="""Extract the following information from this First Notice of Loss document:

1. Claimant full name
2. Date of loss (incident date)
3. Time of loss
4. Location of incident (address)
5. Description of incident
6. Type of loss (auto collision, property damage, injury, etc.)
7. Policy number
8. Contact phone number
9. Contact email
10. Injuries reported (yes/no, description if yes)
11. Police report filed (yes/no, report number if yes)
12. Other parties involved (names, contact info)
13. Witnesses (names, contact info)
14. Estimated damage amount
15. Vehicle information (if auto claim: year, make, model, VIN)

Return the extracted data in a structured JSON format.""",
        fields=_fields(
            ("claimantName", "string", "Full name of the claimant"),
            ("dateOfLoss", "date", "Date when the incident occurred"),
            ("timeOfLoss", "string", "Time when the incident occurred"),
            ("incidentLocation", "string", "Full address where incident occurred"),
            ("incidentDescription", "string", "Detailed description of what happened"),
            ("lossType", "string", "Type of loss (auto collision, property damage, etc.)"),
            ("policyNumber", "string", "Insurance policy number"),
            ("contactPhone", "string", "Claimant phone number"),
            ("contactEmail", "string", "Claimant email address"),
            ("injuriesReported", "string", "Were injuries reported (yes/no)"),
            ("injuryDescription", "string", "Description of injuries if any"),
            ("policeReportFiled", "string", "Was police report filed (yes/no)"),
            ("policeReportNumber", "string", "Police report number if filed"),
            ("otherParties", "string", "Names of other parties involved"),
            ("witnesses", "string", "Names of witnesses"),
            ("estimatedDamage", "string", "Estimated damage amount in dollars"),
            ("vehicleYear", "string", "Vehicle year"),
            ("vehicleMake", "string", "Vehicle make"),
            ("vehicleModel", "string", "Vehicle model"),
            ("vehicleVIN", "string", "Vehicle identification number"),
        ),
    ),
    "medical": ExtractionConfig(
        name="Medical_Record_Extraction",
        prompt="""Extract the following information from this medical record:

1. Patient name
2. Date of service
3. Provider name and facility
4. Provider type (ER, physician, specialist, etc.)
5. Chief complaint
6. Diagnosis (ICD-10 codes if available)
7. Treatment provided
8. Procedures performed (CPT codes if available)
9. Medications prescribed
10. Follow-up instructions
11. Work restrictions (if any)
12. Prognosis
13. Total charges
14. Is this related to an accident/injury? (yes/no)

Return structured JSON format.""",
        fields=_fields(
            ("patientName", "string", "Patient full name"),
            ("dateOfService", "date", "Date of medical service"),
            ("providerName", "string", "Doctor or provider name"),
            ("facilityName", "string", "Hospital or clinic name"),
            ("providerType", "string", "Type of provider (ER, specialist, etc.)"),
            ("chiefComplaint", "string", "Primary reason for visit"),
            ("diagnoses", "string", "Medical diagnoses"),
            ("icd10Codes", "string", "ICD-10 diagnosis codes"),
            ("treatmentProvided", "string", "Treatment provided"),
            ("procedures", "string", "Procedures performed"),
            ("cptCodes", "string", "CPT procedure codes"),
            ("medications", "string", "Medications prescribed"),
            ("followUpInstructions", "string", "Follow-up care instructions"),
            ("workRestrictions", "string", "Work restrictions if any"),
            ("prognosis", "string", "Expected recovery prognosis"),
            ("totalCharges", "string", "Total charges in dollars"),
            ("accidentRelated", "string", "Is treatment accident related (yes/no)"),
        ),
    ),
    "estimate": ExtractionConfig(
        name="Repair_Estimate_Extraction",
        prompt="""Extract the following from this repair estimate:

1. Estimate provider (shop name)
2. Estimate date
3. Estimate number
4. Vehicle/Property information
5. Line items (description, quantity, unit price, total)
6. Parts total
7. Labor total
8. Labor hours
9. Labor rate
10. Materials/supplies total
11. Sublet work
12. Tax
13. Grand total
14. Repair vs Replace decisions
15. Supplemental estimate? (yes/no)

Return structured JSON.""",
        fields=_fields(
            ("estimateProvider", "string", "Name of repair shop"),
            ("estimateDate", "date", "Date estimate was created"),
            ("estimateNumber", "string", "Estimate reference number"),
            ("vehicleInfo", "string", "Vehicle year/make/model"),
            ("lineItems", "string", "Description of repair items"),
            ("partsTotal", "string", "Total cost of parts"),
            ("laborTotal", "string", "Total labor cost"),
            ("laborHours", "string", "Total labor hours"),
            ("laborRate", "string", "Labor rate per hour"),
            ("materialsTotal", "string", "Materials and supplies total"),
            ("subletTotal", "string", "Sublet work total"),
            ("tax", "string", "Tax amount"),
            ("grandTotal", "string", "Grand total amount"),
            ("repairVsReplace", "string", "Repair or replace decision"),
            ("isSupplemental", "string", "Is this a supplemental estimate (yes/no)"),
        ),
    ),
    "police": ExtractionConfig(
        name="Police_Report_Extraction",
        prompt="""Extract the following from this police/accident report:

1. Report number
2. Report date and time
3. Incident date and time
4. Incident location (full address)
5. Reporting officer name and badge number
6. Agency name
7. Involved parties (names, DOB, addresses, driver license)
8. Vehicles involved (year, make, model, plate, VIN)
9. Narrative/description of incident
10. Citations issued (to whom, violation)
11. Fault determination (if stated)
12. Injuries reported
13. Witnesses
14. Damage description
15. Weather/road conditions
16. Diagram included? (yes/no)

Return structured JSON.""",
        fields=_fields(
            ("reportNumber", "string", "Police report number"),
            ("reportDate", "date", "Date report was filed"),
            ("incidentDateTime", "string", "Date and time of incident"),
            ("incidentLocation", "string", "Full address of incident"),
            ("officerName", "string", "Reporting officer name"),
            ("badgeNumber", "string", "Officer badge number"),
            ("agencyName", "string", "Police department name"),
            ("involvedParties", "string", "Names of all involved parties"),
            ("vehicles", "string", "Vehicle information"),
            ("narrative", "string", "Description of what happened"),
            ("citations", "string", "Citations issued"),
            ("faultDetermination", "string", "Fault determination if stated"),
            ("injuries", "string", "Injuries reported"),
            ("witnesses", "string", "Witness names"),
            ("damageDescription", "string", "Description of damages"),
            ("weatherConditions", "string", "Weather conditions"),
            ("roadConditions", "string", "Road conditions"),
            ("diagramIncluded", "string", "Diagram included (yes/no)"),
        ),
    ),
    "invoice": ExtractionConfig(
        name="Vendor_Invoice_Extraction",
        prompt="""Extract the following from this vendor invoice:

1. Vendor name
2. Vendor address
3. Invoice number
4. Invoice date
5. Due date
6. Service description
7. Line items with amounts
8. Subtotal
9. Tax
10. Total amount
11. Payment terms
12. Reference/claim number

Return structured JSON.""",
        fields=_fields(
            ("vendorName", "string", "Vendor company name"),
            ("vendorAddress", "string", "Vendor address"),
            ("invoiceNumber", "string", "Invoice number"),
            ("invoiceDate", "date", "Invoice date"),
            ("dueDate", "date", "Payment due date"),
            ("serviceDescription", "string", "Description of services"),
            ("lineItems", "string", "Line items and amounts"),
            ("subtotal", "string", "Subtotal amount"),
            ("tax", "string", "Tax amount"),
            ("totalAmount", "string", "Total invoice amount"),
            ("paymentTerms", "string", "Payment terms"),
            ("claimReference", "string", "Related claim number"),
        ),
    ),
    "insurance_claim": ExtractionConfig(
        name="Insurance_Claim_Extraction",
        prompt="""Extract the following information from this insurance claim document:

1. Claimant full name
2. Policy number
3. Claim type (auto, property, health, life, etc.)
4. Date of incident/loss
5. Location of incident
6. Description of incident
7. Estimated claim amount
8. Contact information (phone, email, address)
9. Injuries reported (if any)
10. Property damage description (if any)
11. Third parties involved (names, contact info)
12. Witnesses (names, contact info)
13. Police/fire report filed (yes/no, report number)
14. Supporting documents listed
15. Claim status

Return the extracted data in a structured JSON format.""",
        fields=_fields(
            ("claimantName", "string", "Full name of the claimant"),
            ("policyNumber", "string", "Insurance policy number"),
            ("claimType", "string", "Type of insurance claim"),
            ("dateOfIncident", "date", "Date when the incident occurred"),
            ("incidentLocation", "string", "Location where incident occurred"),
            ("incidentDescription", "string", "Detailed description of the incident"),
            ("estimatedAmount", "string", "Estimated claim amount in dollars"),
            ("contactPhone", "string", "Claimant phone number"),
            ("contactEmail", "string", "Claimant email address"),
            ("contactAddress", "string", "Claimant address"),
            ("injuriesReported", "string", "Description of injuries if any"),
            ("propertyDamage", "string", "Description of property damage"),
            ("thirdParties", "string", "Third parties involved"),
            ("witnesses", "string", "Witness names and contact info"),
            ("policeReportFiled", "string", "Police/fire report filed (yes/no)"),
            ("reportNumber", "string", "Police/fire report number"),
            ("supportingDocuments", "string", "List of supporting documents"),
            ("claimStatus", "string", "Current status of the claim"),
        ),
    ),
}


SUMMARY_PROMPTS: Dict[str, str] = {
    "claim": """Summarize this claim document with the following structure:

**CLAIM SUMMARY**

1. **Incident Overview**: Brief description of what happened (2-3 sentences)
2. **Key Facts**: Date/Time of Loss, Location, Parties Involved, Type of Claim
3. **Damages/Injuries**: Summary of reported damages or injuries
4. **Current Status**: Where the claim stands in the process
5. **Key Documents**: List of important documents in the file
6. **Red Flags/Concerns**: Any inconsistencies or items requiring attention
7. **Recommended Next Steps**: Suggested actions for the adjuster

Keep the summary concise but comprehensive.""",
    "medical": """Summarize this medical record for insurance claims review:

**MEDICAL SUMMARY**

1. **Patient & Provider**: Who and where
2. **Date of Treatment**: When services were provided
3. **Chief Complaint**: Why the patient sought treatment
4. **Diagnosis**: Primary and secondary diagnoses with ICD-10 codes
5. **Treatment Provided**: Procedures and medications
6. **Injury Causation**: Is the treatment related to the claimed incident?
7. **Prognosis & Follow-up**: Expected recovery and next steps
8. **Charges**: Total billed amount
9. **Claims Relevance**: How this relates to the insurance claim""",
    "general": (
        "Provide a comprehensive summary of this document, highlighting the key "
        "information relevant to insurance claims processing."
    ),
}


FRAUD_PROMPT = """Analyze this document for potential fraud indicators. Check for:

1. **Timing Issues**: Friday losses, claims filed just before policy expiration, delayed reporting
2. **Documentation Concerns**: Missing documents, inconsistent dates, altered documents
3. **Statement Inconsistencies**: Conflicting accounts, changed stories, vague details
4. **Financial Red Flags**: Inflated damages, pre-existing damage, round dollar amounts
5. **Prior History**: Multiple prior claims, similar claims, coverage increase timing
6. **Provider Concerns**: Unusual provider patterns, excessive treatment

For each potential indicator found:
- Rate severity (Low/Medium/High)
- Cite specific evidence from the document
- Recommend investigation steps

Provide a summary risk score (0-100) with justification.

Return as JSON with structure:
{
  "riskScore": number,
  "riskLevel": "LOW|MEDIUM|HIGH",
  "indicators": [{"type": string, "severity": string, "evidence": string, "recommendation": string}],
  "summary": string
}"""


# Keyword in the uploaded file name -> extraction type. First match wins.
FILENAME_EXTRACTION_TYPES = [
    ("medical", "medical"),
    ("estimate", "estimate"),
    ("police", "police"),
    ("invoice", "invoice"),
]
DEFAULT_EXTRACTION_TYPE = "fnol"


def extraction_type_for_filename(file_name: str) -> str:
    lowered = (file_name or "").lower()
    for keyword, extraction_type in FILENAME_EXTRACTION_TYPES:
        if keyword in lowered:
            return extraction_type
    return DEFAULT_EXTRACTION_TYPE
