"""
Fixed prompt sent with every photo, and the sample analysis shown for the
bundled default image (no AI call is made for the default).
"""

SCAT_PROMPT = (
    "Analyze this animal scat/droppings image for educational purposes and provide "
    "the following information:\n"
    "1. Scat identification (animal species, type, appearance, size, distinguishing features)\n"
    "2. Habitat and distribution (natural habitat, geographic range, seasonal variation, "
    "typical locations)\n"
    "3. Biology and behavior (diet indicators, health assessment, seasonal behavior, "
    "territorial significance)\n"
    "4. Wildlife research value (research applications, conservation relevance, "
    "tracking value, DNA sampling)\n"
    "5. Additional information (similar species, interesting facts, field identification "
    "tips, ecological role)\n"
    "\n"
    "IMPORTANT: This is for educational purposes only."
)

DEFAULT_ANALYSIS = """1. Scat Identification:
- Animal: Deer (Odocoileus species)
- Type: Pellet droppings
- Appearance: Small, oval-shaped pellets, dark brown to black in color
- Size: Approximately 0.5-0.75 inches (1.3-1.9 cm) in length
- Distinguishing Features: Clustered pellet formation, pointed on one end

2. Habitat & Distribution:
- Natural Habitat: Forests, meadows, grasslands, agricultural areas
- Geographic Range: Throughout North America
- Seasonal Variation: More concentrated in winter when food is scarce
- Typical Location: Often found on game trails, feeding areas, and bedding sites
- Elevation Range: From sea level to mountainous regions (up to 10,000 feet)

3. Biology & Behavior:
- Diet Indicators: Plant matter visible, indicating herbivorous diet
- Health Assessment: Well-formed, indicating healthy digestion
- Seasonal Behavior: Pellet size and composition varies by season based on diet
- Territorial Significance: Not used for territorial marking
- Population Density: Clustered droppings may indicate higher population density

4. Wildlife Research Value:
- Research Applications: Population surveys, diet analysis, health monitoring
- Conservation Relevance: Can indicate habitat use and population health
- Tracking Value: Fresh droppings indicate recent presence (within 24-48 hours)
- DNA Sampling: Can be used for genetic analysis and population studies
- Disease Monitoring: Can be screened for parasites and pathogens

5. Additional Information:
- Similar Species: Can be confused with rabbit droppings (rounder, larger)
- Interesting Facts: Deer pellet count techniques are used to estimate population
- Field Identification Tips: Deer scat is typically found in clusters of 50-75 pellets
- Ecological Role: Contributes to seed dispersal and nutrient cycling
- Safety Notes: Generally low risk, but always wash hands after handling any wildlife scat"""
