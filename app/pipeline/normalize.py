import unicodedata


# Candidate headers per canonical field, highest priority first.
MONTH_CANDIDATES = ('MES', 'MES INCIDENCIA', 'FECHA', 'MES REPORTE')
ALMACEN_CANDIDATES = ('ALMACEN', 'ALMACEN DESTINO', 'ALMACEN ORIGEN')
MONITORISTA_CANDIDATES = ('MONITORISTA QUIEN REPORTA', 'MONITORISTA', 'REPORTA')
COORDINADOR_CANDIDATES = ('COORDINADOR EN TURNO', 'COORDINADOR', 'COORD')
FECHA_ENVIO_CANDIDATES = (
    'FECHA DE ENVIO',
    'FECHAENVIO',
    'FECHA ENVÍO',
    'FECHA ENVIÓ',
    'FECHA ENVIO',
    'FECHA DE ENVÍO',
    'FECHA ENVIo',
    'FECHAENVIO (DIA)',
    'FECHA EN QUE SE ENVIA',
    'FECHAENVIADA',
    'FECHA',
)

# Wider lists used when re-resolving filter options from stored row JSON.
ALMACEN_OPTION_CANDIDATES = ALMACEN_CANDIDATES + ('SUCURSAL', 'TIENDA')
MONITORISTA_OPTION_CANDIDATES = (
    'MONITORISTA QUIEN REPORTA',
    'MONITORISTA',
    'QUIEN REPORTA',
    'PERSONA QUE REPORTA',
    'MONITORISTA QUE REPORTA',
)
COORDINADOR_OPTION_CANDIDATES = COORDINADOR_CANDIDATES


def normalize_header(header):
    """
    Normalize a spreadsheet header into a lookup key:
    1. Trim whitespace (blank -> "")
    2. Convert to uppercase
    3. Drop combining accent marks (Á -> A, Ñ -> N)
    4. Keep only letters and digits
    """
    if header is None:
        return ''
    if not isinstance(header, str):
        header = str(header)

    # Trim
    normalized = header.strip()
    if not normalized:
        return ''

    # Uppercase, then decompose so accents become separate marks
    normalized = unicodedata.normalize('NFD', normalized.upper())

    # Strip accents and everything that is not alphanumeric
    normalized = ''.join(
        ch for ch in normalized
        if unicodedata.category(ch) != 'Mn' and ch.isalnum()
    )

    return unicodedata.normalize('NFC', normalized)


def _clean(value):
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def build_normalized_lookup(row_data):
    """
    Map normalized header -> trimmed value for one row.
    The first header that normalizes to a given key wins.
    """
    lookup = {}
    for header, value in row_data.items():
        key = normalize_header(header)
        if key not in lookup:
            lookup[key] = _clean(value)
    return lookup


def containment_match(key, candidate):
    """Permissive fallback: prefix either way, or candidate contained in key."""
    return key.startswith(candidate) or candidate.startswith(key) or candidate in key


def exact_match(key, candidate):
    """Strict matcher: disables the fallback scan."""
    return False


def resolve_field(lookup, candidates, matcher=containment_match):
    """
    Return the first non-blank value for the candidate headers, or None.

    Candidates are tried in order. An exact normalized key wins immediately;
    otherwise every non-blank lookup entry is offered to `matcher` and the
    first accepted one is returned.

    The default matcher can produce false positives for short candidates
    (e.g. "NO" matches "NOMINA"); pass `exact_match` or a stricter callable
    where that matters.
    """
    for candidate in candidates:
        normalized = normalize_header(candidate)
        if not normalized:
            continue

        value = lookup.get(normalized)
        if value:
            return value.strip()

        for key, value in lookup.items():
            if not value or not key:
                continue
            if matcher(key, normalized):
                return value.strip()

    return None
