"""TIFF tag tables for each directory family.

References
----------
.. [TIFF6] Adobe Developers Association.  TIFF Revision 6.0, 1992.

.. [EXIF232] CIPA DC-008-2019.  Exchangeable image file format for digital
   still cameras:  Exif Version 2.32.
"""

# Pointer tags.  An entry with one of these tags holds the offset of another
# directory rather than a value.
SUBIFDS = 0x014A
EXIF_IFD = 0x8769
GPS_IFD = 0x8825
INTEROP_IFD = 0xA005

# Tags valid in IFD0, IFD1, ... and in SubIFDs.
TIFF_TAGS = {
    "NewSubfileType": 254,
    "SubfileType": 255,
    "ImageWidth": 256,
    "ImageLength": 257,
    "BitsPerSample": 258,
    "Compression": 259,
    "PhotometricInterpretation": 262,
    "Threshholding": 263,
    "CellWidth": 264,
    "CellLength": 265,
    "FillOrder": 266,
    "DocumentName": 269,
    "ImageDescription": 270,
    "Make": 271,
    "Model": 272,
    "StripOffsets": 273,
    "Orientation": 274,
    "SamplesPerPixel": 277,
    "RowsPerStrip": 278,
    "StripByteCounts": 279,
    "MinSampleValue": 280,
    "MaxSampleValue": 281,
    "XResolution": 282,
    "YResolution": 283,
    "PlanarConfiguration": 284,
    "PageName": 285,
    "XPosition": 286,
    "YPosition": 287,
    "FreeOffsets": 288,
    "FreeByteCounts": 289,
    "GrayResponseUnit": 290,
    "GrayResponseCurve": 291,
    "T4Options": 292,
    "T6Options": 293,
    "ResolutionUnit": 296,
    "PageNumber": 297,
    "TransferFunction": 301,
    "Software": 305,
    "DateTime": 306,
    "Artist": 315,
    "HostComputer": 316,
    "Predictor": 317,
    "WhitePoint": 318,
    "PrimaryChromaticities": 319,
    "ColorMap": 320,
    "HalftoneHints": 321,
    "TileWidth": 322,
    "TileLength": 323,
    "TileOffsets": 324,
    "TileByteCounts": 325,
    "SubIFDs": SUBIFDS,
    "InkSet": 332,
    "InkNames": 333,
    "NumberOfInks": 334,
    "DotRange": 336,
    "TargetPrinter": 337,
    "ExtraSamples": 338,
    "SampleFormat": 339,
    "SMinSampleValue": 340,
    "SMaxSampleValue": 341,
    "TransferRange": 342,
    "JPEGTables": 347,
    "JPEGProc": 512,
    "JPEGInterchangeFormat": 513,
    "JPEGInterchangeFormatLength": 514,
    "JPEGRestartInterval": 515,
    "JPEGLosslessPredictors": 517,
    "JPEGPointTransforms": 518,
    "JPEGQTables": 519,
    "JPEGDCTables": 520,
    "JPEGACTables": 521,
    "YCbCrCoefficients": 529,
    "YCbCrSubSampling": 530,
    "YCbCrPositioning": 531,
    "ReferenceBlackWhite": 532,
    "XMLPacket": 700,
    "Rating": 18246,
    "RatingPercent": 18249,
    "ImageID": 32781,
    "Copyright": 33432,
    "ModelPixelScale": 33550,
    "IPTC": 33723,
    "ModelTiePoint": 33922,
    "ModelTransformation": 34264,
    "Photoshop": 34377,
    "ExifIFD": EXIF_IFD,
    "ICCProfile": 34675,
    "GeoKeyDirectory": 34735,
    "GeoDoubleParams": 34736,
    "GeoAsciiParams": 34737,
    "GPSIFD": GPS_IFD,
    "ImageSourceData": 37724,
    "XPTitle": 40091,
    "XPComment": 40092,
    "XPAuthor": 40093,
    "XPKeywords": 40094,
    "XPSubject": 40095,
    "PrintImageMatching": 50341,
    "DNGVersion": 50706,
    "DNGBackwardVersion": 50707,
    "UniqueCameraModel": 50708,
    "LocalizedCameraModel": 50709,
    "DNGPrivateData": 50740,
}

# Tags valid in the EXIF directory.
EXIF_TAGS = {
    "ExposureTime": 33434,
    "FNumber": 33437,
    "ExposureProgram": 34850,
    "SpectralSensitivity": 34852,
    "ISOSpeedRatings": 34855,
    "OECF": 34856,
    "SensitivityType": 34864,
    "StandardOutputSensitivity": 34865,
    "RecommendedExposureIndex": 34866,
    "ISOSpeed": 34867,
    "ISOSpeedLatitudeyyy": 34868,
    "ISOSpeedLatitudezzz": 34869,
    "ExifVersion": 36864,
    "DateTimeOriginal": 36867,
    "DateTimeDigitized": 36868,
    "OffsetTime": 36880,
    "OffsetTimeOriginal": 36881,
    "OffsetTimeDigitized": 36882,
    "ComponentsConfiguration": 37121,
    "CompressedBitsPerPixel": 37122,
    "ShutterSpeedValue": 37377,
    "ApertureValue": 37378,
    "BrightnessValue": 37379,
    "ExposureBiasValue": 37380,
    "MaxApertureValue": 37381,
    "SubjectDistance": 37382,
    "MeteringMode": 37383,
    "LightSource": 37384,
    "Flash": 37385,
    "FocalLength": 37386,
    "SubjectArea": 37396,
    "MakerNote": 37500,
    "UserComment": 37510,
    "SubsecTime": 37520,
    "SubsecTimeOriginal": 37521,
    "SubsecTimeDigitized": 37522,
    "Temperature": 37888,
    "Humidity": 37889,
    "Pressure": 37890,
    "WaterDepth": 37891,
    "Acceleration": 37892,
    "CameraElevationAngle": 37893,
    "FlashpixVersion": 40960,
    "ColorSpace": 40961,
    "PixelXDimension": 40962,
    "PixelYDimension": 40963,
    "RelatedSoundFile": 40964,
    "InteroperabilityIFD": INTEROP_IFD,
    "FlashEnergy": 41483,
    "SpatialFrequencyResponse": 41484,
    "FocalPlaneXResolution": 41486,
    "FocalPlaneYResolution": 41487,
    "FocalPlaneResolutionUnit": 41488,
    "SubjectLocation": 41492,
    "ExposureIndex": 41493,
    "SensingMethod": 41495,
    "FileSource": 41728,
    "SceneType": 41729,
    "CFAPattern": 41730,
    "CustomRendered": 41985,
    "ExposureMode": 41986,
    "WhiteBalance": 41987,
    "DigitalZoomRatio": 41988,
    "FocalLengthIn35mmFilm": 41989,
    "SceneCaptureType": 41990,
    "GainControl": 41991,
    "Contrast": 41992,
    "Saturation": 41993,
    "Sharpness": 41994,
    "DeviceSettingDescription": 41995,
    "SubjectDistanceRange": 41996,
    "ImageUniqueID": 42016,
    "CameraOwnerName": 42032,
    "BodySerialNumber": 42033,
    "LensSpecification": 42034,
    "LensMake": 42035,
    "LensModel": 42036,
    "LensSerialNumber": 42037,
    "CompositeImage": 42080,
    "SourceImageNumberOfCompositeImage": 42081,
    "SourceExposureTimesOfCompositeImage": 42082,
    "Gamma": 42240,
    "PrintImageMatching": 50341,
}

# Tags valid in the GPS directory.
GPS_TAGS = {
    "GPSVersionID": 0,
    "GPSLatitudeRef": 1,
    "GPSLatitude": 2,
    "GPSLongitudeRef": 3,
    "GPSLongitude": 4,
    "GPSAltitudeRef": 5,
    "GPSAltitude": 6,
    "GPSTimeStamp": 7,
    "GPSSatellites": 8,
    "GPSStatus": 9,
    "GPSMeasureMode": 10,
    "GPSDOP": 11,
    "GPSSpeedRef": 12,
    "GPSSpeed": 13,
    "GPSTrackRef": 14,
    "GPSTrack": 15,
    "GPSImgDirectionRef": 16,
    "GPSImgDirection": 17,
    "GPSMapDatum": 18,
    "GPSDestLatitudeRef": 19,
    "GPSDestLatitude": 20,
    "GPSDestLongitudeRef": 21,
    "GPSDestLongitude": 22,
    "GPSDestBearingRef": 23,
    "GPSDestBearing": 24,
    "GPSDestDistanceRef": 25,
    "GPSDestDistance": 26,
    "GPSProcessingMethod": 27,
    "GPSAreaInformation": 28,
    "GPSDateStamp": 29,
    "GPSDifferential": 30,
    "GPSHPositioningError": 31,
}

# Tags valid in the interoperability directory.
INTEROP_TAGS = {
    "InteroperabilityIndex": 1,
    "InteroperabilityVersion": 2,
    "RelatedImageFileFormat": 0x1000,
    "RelatedImageWidth": 0x1001,
    "RelatedImageLength": 0x1002,
}

# We need the reverse mappings as well.
TIFF_TAGNUM2NAME = {value: key for key, value in TIFF_TAGS.items()}
EXIF_TAGNUM2NAME = {value: key for key, value in EXIF_TAGS.items()}
GPS_TAGNUM2NAME = {value: key for key, value in GPS_TAGS.items()}
INTEROP_TAGNUM2NAME = {value: key for key, value in INTEROP_TAGS.items()}
