def statfin_entry_point() -> str:
    """
    Acts as a general entry point and guide for interacting with the StatFin MCP server.
    Describes the available tools and a plan for answering questions about the
    Kaustinen sub-region municipalities.
    """
    return (
        "## StatFin MCP Server Interaction Guide\n\n"
        "**Objective:** You are interacting with official Statistics Finland (StatFin) data for five "
        "municipalities of the Kaustinen sub-region: Halsua (KU074), Kaustinen (KU236), "
        "Lestijärvi (KU421), Toholampi (KU849) and Veteli (KU924). The data covers population, "
        "employment and unemployment rates, the demographic dependency ratio, students continuing "
        "to further education, enterprise counts, births and the official population projection.\n\n"
        "**Your Task:** Analyze the user's request and use the tools below to answer it. Think "
        "step-by-step about which figures the question needs.\n\n"
        "**Available Tools & Common Use Cases:**\n\n"
        "1.  **`list_municipalities()`:**\n"
        "    *   **Use When:** You need the municipality names and StatFin codes.\n"
        "2.  **`get_regional_overview(municipalities: str = \"\", year: int | None = None)`:**\n"
        "    *   **Use When:** The user wants to *compare municipalities* or see regional totals.\n"
        "3.  **`get_municipality_overview(municipality: str, year: int | None = None)`:**\n"
        "    *   **Use When:** The user asks about *one municipality*: current figures, trends and outlook.\n"
        "4.  **`forecast_enterprises(municipality: str, horizon_years: int = 5)`:**\n"
        "    *   **Use When:** The user wants a projection of the number of enterprises.\n"
        "5.  **`get_population_outlook()`:**\n"
        "    *   **Use When:** The user asks about future population (2030, 2045).\n"
        "6.  **`get_dataset_series(dataset: str)`:**\n"
        "    *   **Use When:** You need the raw yearly values of a single dataset.\n"
        "7.  **`generate_insights(municipalities: str = \"\")`:**\n"
        "    *   **Use When:** The user wants a short written analysis in Finnish.\n"
        "8.  **`refresh_dashboard()`:**\n"
        "    *   **Use When:** The user explicitly asks for the newest published data.\n\n"
        "**General Strategy & Workflow:**\n\n"
        "1. Understand the user's goal.\n"
        "2. Pick the overview tool that matches the question before reaching for raw series.\n"
        "3. Treat a missing value as unknown, never as zero.\n"
        "4. Say which year each figure comes from; rates may lag the population data by a year.\n"
        "5. Mark forecasts and projections clearly as estimates.\n"
        "6. If a dataset is empty, tell the user the data is not available.\n"
        "\n**Now, analyze the user's request and determine the best tool(s) and sequence to use.**"
    )
