"""Device model identifiers ("iPhone8,2") and their marketing names."""

from __future__ import annotations

import platform

# https://www.theiphonewiki.com/wiki/Models
MODEL_NAMES: dict[str, str] = {
    # iPod
    "iPod5,1": "iPod Touch 5",
    "iPod7,1": "iPod Touch 6",
    "iPod9,1": "iPod Touch 7",
    # iPhone
    "iPhone3,1": "iPhone 4",
    "iPhone3,2": "iPhone 4",
    "iPhone3,3": "iPhone 4",
    "iPhone4,1": "iPhone 4S",
    "iPhone5,1": "iPhone 5",
    "iPhone5,2": "iPhone 5",
    "iPhone5,3": "iPhone 5C",
    "iPhone5,4": "iPhone 5C",
    "iPhone6,1": "iPhone 5S",
    "iPhone6,2": "iPhone 5S",
    "iPhone7,2": "iPhone 6",
    "iPhone7,1": "iPhone 6 Plus",
    "iPhone8,1": "iPhone 6S",
    "iPhone8,2": "iPhone 6S Plus",
    "iPhone8,4": "iPhone SE",
    "iPhone9,1": "iPhone 7",
    "iPhone9,3": "iPhone 7",
    "iPhone9,2": "iPhone 7 Plus",
    "iPhone9,4": "iPhone 7 Plus",
    "iPhone10,1": "iPhone 8",
    "iPhone10,4": "iPhone 8",
    "iPhone10,2": "iPhone 8 Plus",
    "iPhone10,5": "iPhone 8 Plus",
    "iPhone10,3": "iPhone X",
    "iPhone10,6": "iPhone X",
    "iPhone11,8": "iPhone XR",
    "iPhone11,2": "iPhone XS",
    "iPhone11,6": "iPhone XS Max",
    "iPhone11,4": "iPhone XS Max",
    "iPhone12,1": "iPhone 11",
    "iPhone12,3": "iPhone 11 Pro",
    "iPhone12,5": "iPhone 11 Pro Max",
    "iPhone12,8": "iPhone SE (2nd generation)",
    "iPhone13,1": "iPhone 12 mini",
    "iPhone13,2": "iPhone 12",
    "iPhone13,3": "iPhone 12 Pro",
    "iPhone13,4": "iPhone 12 Pro Max",
    # iPad
    "iPad2,1": "iPad 2",
    "iPad2,2": "iPad 2",
    "iPad2,3": "iPad 2",
    "iPad2,4": "iPad 2",
    "iPad3,1": "iPad 3",
    "iPad3,2": "iPad 3",
    "iPad3,3": "iPad 3",
    "iPad3,4": "iPad 4",
    "iPad3,5": "iPad 4",
    "iPad3,6": "iPad 4",
    "iPad6,11": "iPad 5",
    "iPad6,12": "iPad 5",
    "iPad7,5": "iPad 6",
    "iPad7,6": "iPad 6",
    "iPad7,11": "iPad 7",
    "iPad7,12": "iPad 7",
    "iPad11,6": "iPad 8",
    "iPad11,7": "iPad 8",
    # iPad Air
    "iPad4,1": "iPad Air",
    "iPad4,2": "iPad Air",
    "iPad4,3": "iPad Air",
    "iPad5,3": "iPad Air 2",
    "iPad5,4": "iPad Air 2",
    "iPad11,3": "iPad Air 3",
    "iPad11,4": "iPad Air 3",
    "iPad13,1": "iPad Air 4",
    "iPad13,2": "iPad Air 4",
    # iPad Mini
    "iPad2,5": "iPad Mini",
    "iPad2,6": "iPad Mini",
    "iPad2,7": "iPad Mini",
    "iPad4,4": "iPad Mini 2",
    "iPad4,5": "iPad Mini 2",
    "iPad4,6": "iPad Mini 2",
    "iPad4,7": "iPad Mini 3",
    "iPad4,8": "iPad Mini 3",
    "iPad4,9": "iPad Mini 3",
    "iPad5,1": "iPad Mini 4",
    "iPad5,2": "iPad Mini 4",
    "iPad11,1": "iPad Mini 5",
    "iPad11,2": "iPad Mini 5",
    # iPad Pro
    "iPad6,7": "iPad Pro (12.9 inch)",
    "iPad6,8": "iPad Pro (12.9 inch)",
    "iPad6,3": "iPad Pro (9.7 inch)",
    "iPad6,4": "iPad Pro (9.7 inch)",
    "iPad7,1": "iPad Pro (12.9 inch) (2nd generation)",
    "iPad7,2": "iPad Pro (12.9 inch) (2nd generation)",
    "iPad7,3": "iPad Pro (10.5 inch)",
    "iPad7,4": "iPad Pro (10.5 inch)",
    "iPad8,1": "iPad Pro (11 inch)",
    "iPad8,2": "iPad Pro (11 inch)",
    "iPad8,3": "iPad Pro (11 inch)",
    "iPad8,4": "iPad Pro (11 inch)",
    "iPad8,5": "iPad Pro (12.9 inch) (3rd generation)",
    "iPad8,6": "iPad Pro (12.9 inch) (3rd generation)",
    "iPad8,7": "iPad Pro (12.9 inch) (3rd generation)",
    "iPad8,8": "iPad Pro (12.9 inch) (3rd generation)",
    "iPad8,9": "iPad Pro (11 inch) (2nd generation)",
    "iPad8,10": "iPad Pro (11 inch) (2nd generation)",
    "iPad8,11": "iPad Pro (12.9 inch) (4th generation)",
    "iPad8,12": "iPad Pro (12.9 inch) (4th generation)",
    # Apple TV
    "AppleTV5,3": "Apple TV HD",
    "AppleTV6,2": "Apple TV 4K",
    # Apple Watch
    "Watch1,1": "Apple Watch (38mm)",
    "Watch1,2": "Apple Watch (42mm)",
    "Watch2,6": "Apple Watch Series 1 (38mm)",
    "Watch2,7": "Apple Watch Series 1 (42mm)",
    "Watch2,3": "Apple Watch Series 2 (38mm)",
    "Watch2,4": "Apple Watch Series 2 (42mm)",
    "Watch3,1": "Apple Watch Series 3 (38mm)",
    "Watch3,2": "Apple Watch Series 3 (42mm)",
    "Watch3,3": "Apple Watch Series 3 (38mm)",
    "Watch3,4": "Apple Watch Series 3 (42mm)",
    "Watch4,1": "Apple Watch Series 4 (40mm)",
    "Watch4,2": "Apple Watch Series 4 (44mm)",
    "Watch4,3": "Apple Watch Series 4 (40mm)",
    "Watch4,4": "Apple Watch Series 4 (44mm)",
    "Watch5,1": "Apple Watch Series 5 (40mm)",
    "Watch5,2": "Apple Watch Series 5 (44mm)",
    "Watch5,3": "Apple Watch Series 5 (40mm)",
    "Watch5,4": "Apple Watch Series 5 (44mm)",
    # Simulator
    "x86_64": "Simulator",
    "i386": "Simulator",
    "arm64": "Simulator",
}

# Prefix of the model identifier -> device type
_TYPE_PREFIXES: list[tuple[str, str]] = [
    ("iPhone", "iPhone"),
    ("iPad", "iPad"),
    ("iPod", "iPod"),
    ("AppleTV", "Apple TV"),
    ("Watch", "Apple Watch"),
]


def model_identifier() -> str:
    """Raw identifier of the host machine, e.g. "iPhone8,2" or "x86_64"."""
    return platform.machine()


def model_name(identifier: str | None = None) -> str:
    """User-facing model name, e.g. "iPhone 6S Plus".

    Unknown identifiers are returned as-is.
    """
    if identifier is None:
        identifier = model_identifier()
    return MODEL_NAMES.get(identifier, identifier)


def device_type(identifier: str | None = None) -> str:
    """Broad device family, e.g. "iPhone", "Apple Watch" or "Unspecified".

    The family comes from the hardware model identifier, so "CarPlay" is never
    reported: a car display is an interface the phone drives, not a model of
    its own.
    """
    if identifier is None:
        identifier = model_identifier()
    for prefix, kind in _TYPE_PREFIXES:
        if identifier.startswith(prefix):
            return kind
    if MODEL_NAMES.get(identifier) == "Simulator":
        return "Simulator"
    return "Unspecified"
